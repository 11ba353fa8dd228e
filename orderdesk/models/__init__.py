from .user import User
from .company import Company
from .distributor_order import DistributorOrder, DistributorOrderItem
from .invoice import Invoice, InvoiceItem
from .approval import ApprovalIntent
from .activity import ActivityLog
