from pydantic import BaseModel
from typing import List
import enum


class Currency(str, enum.Enum):
    INR = "INR"
    USD = "USD"


class QuotationLineItem(BaseModel):
    label: str
    count: int
    rate: int
    subtotal: int


class QuotationBreakdown(BaseModel):
    """Itemized cost of a team composition in one currency"""
    currency: Currency
    line_items: List[QuotationLineItem]
    management_fee: int
    total: int
