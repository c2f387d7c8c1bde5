from catalogs_api.models.tenant import Tenant
from catalogs_api.models.user import User
from catalogs_api.models.catalog import Catalog, Vertical
