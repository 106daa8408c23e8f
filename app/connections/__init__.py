from app.connections.mongo import close_mongo, init_mongo, mongo_lifespan

__all__ = ["init_mongo", "close_mongo", "mongo_lifespan"]
