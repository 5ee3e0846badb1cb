from .dbf import DbfRowSource

__all__ = ["DbfRowSource"]
