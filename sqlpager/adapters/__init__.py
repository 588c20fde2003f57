from sqlpager.adapters.dbapi import AsyncDBAPIDriver, DBAPIDriver

__all__ = ("AsyncDBAPIDriver", "DBAPIDriver")
