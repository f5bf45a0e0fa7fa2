from models.db_storage import DBStorage

# Global storage; create_app() points it at the configured database and reloads it
storage = DBStorage()
