from .storage_event_parser import StorageEventParser

__all__ = ['StorageEventParser']
