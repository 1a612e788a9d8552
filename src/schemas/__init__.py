from .creative import CreativeResponse, PaginatedCreativesResponse, Pagination
