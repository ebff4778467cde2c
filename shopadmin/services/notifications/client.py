from shopadmin.schemas.notifications import Notification, NotificationCreate, NotificationUpdate
from shopadmin.schemas.queries import NotificationQuery
from shopadmin.services.api.base import CrudResourceClient
from shopadmin.services.api.cache import ViewCache


class NotificationClient(CrudResourceClient[Notification]):
    resource = "notifications"
    path = "/notifications"
    model = Notification
    list_key = "notifications"
    item_key = "notification"
    query_model = NotificationQuery
    create_model = NotificationCreate
    update_model = NotificationUpdate

    def _cache_created(self, cache: ViewCache[Notification], entity: Notification) -> None:
        # Newest first
        cache.prepend(entity)
