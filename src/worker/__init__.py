"""Background workers for the e-CF service"""
from .range_expiry import RangeExpiryWorker

__all__ = ["RangeExpiryWorker"]
