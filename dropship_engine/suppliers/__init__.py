"""
공급사 관리
"""

from dropship_engine.suppliers.credentials import CredentialVault
from dropship_engine.suppliers.registry import ORDER_AUTOMATION, SupplierRegistry, slugify

__all__ = ["CredentialVault", "SupplierRegistry", "ORDER_AUTOMATION", "slugify"]
