from foodshare.models.base import Base
from foodshare.models.actor import Actor, Role
from foodshare.models.donation import Donation, DonationStatus
from foodshare.models.notification import Notification

__all__ = ["Base", "Actor", "Role", "Donation", "DonationStatus", "Notification"]
