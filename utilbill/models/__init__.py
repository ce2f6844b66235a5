"""Database models."""

from utilbill.models.building import Building
from utilbill.models.meter import Meter
from utilbill.models.reading import Reading
from utilbill.models.stall import Stall
from utilbill.models.tax_code import VatCode, WithholdingCode
from utilbill.models.tenant import Tenant

__all__ = ["Building", "Stall", "Tenant", "Meter", "Reading", "VatCode", "WithholdingCode"]
