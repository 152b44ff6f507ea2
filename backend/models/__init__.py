from models.users import User, UserRole
from models.categories import Category
from models.category_history import CategoryHistory, CategoryChangeType
from models.inventory_items import InventoryItem
from models.inventory_requests import InventoryRequest, RequestStatus, RequestType
from models.released_orders import ReleasedOrderRequest, ReleasedOrderReport
from models.audit_log import AuditEvent, AuditEntityType, AuditAction
from models.notifications import Notification, NotificationType
from models.reports import Report, ReportAccess, ReportType

__all__ = ['AuditAction', 'AuditEntityType', 'AuditEvent', 'Category', 'CategoryChangeType', 'CategoryHistory', 'InventoryItem', 'InventoryRequest', 'Notification', 'NotificationType', 'ReleasedOrderReport', 'ReleasedOrderRequest', 'Report', 'ReportAccess', 'ReportType', 'RequestStatus', 'RequestType', 'User', 'UserRole',]
