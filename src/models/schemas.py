from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class Role(str, Enum):
    registered = "registered"
    employee = "employee"
    admin = "admin"


class ProductBase(BaseModel):
    product_id: str
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    unit_price: float = Field(ge=0)


class ProductCreate(ProductBase):
    branch_id: int
    initial_quantity: int = Field(ge=0)


class ProductUpdate(BaseModel):
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    unit_price: float = Field(ge=0)


class InventoryAdjust(BaseModel):
    new_quantity: int = Field(ge=0)


class ActiveStateChange(BaseModel):
    is_active: bool


class Product(ProductBase):
    branch_id: int
    quantity_available: int
    is_active: bool

    class Config:
        from_attributes = True


class CatalogProduct(ProductBase):
    """Branch-independent view of a product"""

    class Config:
        from_attributes = True


class OrderCreate(BaseModel):
    branch_id: int
    product_id: str = Field(min_length=1)
    product_name: str
    category: Optional[str] = None
    quantity: int = Field(gt=0)
    unit_price: float = Field(ge=0)
    username: str = Field(min_length=1)
    order_time: Optional[datetime] = None


class OrderPlaced(BaseModel):
    message: str
    new_quantity: int


class OrderLine(BaseModel):
    branch_id: int
    order_time: datetime
    order_id: str
    product_name: str
    category: Optional[str] = None
    quantity: int
    unit_price: float
    total: float
    username: str

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    username: str
    full_name: Optional[str] = None
    role: Role
    branch_id: Optional[int] = None
    access_token: str
    token_type: str = "bearer"


class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1)
    role: Role = Role.registered
    branch_id: Optional[int] = None


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    role: Role
    branch_id: Optional[int] = None


class User(BaseModel):
    username: str
    full_name: Optional[str] = None
    role: Role
    branch_id: Optional[int] = None

    class Config:
        from_attributes = True


class Message(BaseModel):
    message: str


class RegisterResponse(Message):
    username: str


