from .campaigns import Campaign, CampaignStatus
from .creatives import Creative, CreativeType
