from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional, Union


class CartItemSnapshot(BaseModel):
    """Persisted form of a cart item"""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Some item",
                "qty": 2,
                "price": 10.0,
                "options": {"size": "XL", "color": "red"},
                "taxRate": 21.0,
                "class": None
            }
        }
    )

    id: Union[int, str] = Field(description="External item identifier")
    name: str = Field(min_length=1, description="Display name")
    qty: Union[int, float] = Field(description="Quantity, may be fractional")
    price: float = Field(description="Unit price without tax")
    options: Dict[str, Any] = Field(default_factory=dict, description="Item options")
    tax_rate: float = Field(alias="taxRate", description="Tax rate in percent")
    class_name: Optional[str] = Field(default=None, alias="class", description="Associated model type tag")

    @field_validator('id')
    @classmethod
    def validate_id(cls, v):
        if v == "" or v == 0:
            raise ValueError('Identifier cannot be empty')
        return v


class CartItemResponse(CartItemSnapshot):
    """Cart item in API responses, with derived money values"""
    row_id: str = Field(alias="rowId", description="Identity hash of the item")
    tax: float = Field(description="Tax for one unit")
    subtotal: float = Field(description="Line total without tax")
    price_tax: float = Field(alias="priceTax", description="Unit price with tax")
    total: float = Field(description="Line total with tax")
    tax_total: float = Field(alias="taxTotal", description="Tax for the whole line")


class CartTotals(BaseModel):
    """Cart-level totals"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "count": 3,
                "subtotal": 50.0,
                "tax": 10.5,
                "extra_costs": {"shipping": 5.0},
                "total": 65.5
            }
        }
    )

    count: Union[int, float] = Field(description="Sum of item quantities; negative lines count against it")
    subtotal: float = Field(description="Sum of quantity * price")
    tax: float = Field(description="Sum of quantity * unit tax")
    extra_costs: Dict[str, float] = Field(default_factory=dict, description="Named extra costs")
    total: float = Field(description="Subtotal plus tax plus extra costs")


class CartResponse(BaseModel):
    """Complete cart information"""
    instance: str = Field(description="Cart instance name")
    items: List[CartItemResponse] = Field(description="Cart items")
    totals: CartTotals = Field(description="Cart totals")
    is_empty: bool = Field(description="Whether cart is empty")
