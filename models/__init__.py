from models.db_storage import DBStorage

storage = DBStorage()
storage.reload()

from models.identity_store import IdentityStore  # noqa: E402

identities = IdentityStore(storage)
