import re
import uuid
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from .models import TIME_SLOTS, ConsultationStatus, RepairStatus, ReservationStatus

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
PHONE_DIGITS_PATTERN = r"^[0-9]{10,15}$"
CONTACT_PHONE_PATTERN = r"^[+]?[0-9\s\-()]{8,20}$"
MAX_PRICE = 100_000_000


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _today(info: ValidationInfo) -> date:
    context = info.context or {}
    return context.get("today") or date.today()


# --- Form schemas (validation layer) ---

class BookingCreate(BaseModel):
    service_id: str
    booking_date: date
    booking_time: str
    device_info: Optional[str] = Field(default=None, min_length=3, max_length=200)
    problem_description: Optional[str] = Field(default=None, min_length=10, max_length=1000)

    @field_validator("device_info", "problem_description", mode="before")
    @classmethod
    def blank_is_absent(cls, v):
        return _blank_to_none(v)

    @field_validator("booking_date", mode="before")
    @classmethod
    def calendar_date(cls, v):
        # Timestamps and datetimes would otherwise be coerced to a date.
        if isinstance(v, date) and not isinstance(v, datetime):
            return v
        if isinstance(v, str) and ISO_DATE_PATTERN.match(v):
            return v
        raise PydanticCustomError("booking_date", "Booking date must use the YYYY-MM-DD format")

    @field_validator("service_id")
    @classmethod
    def service_reference(cls, v: str) -> str:
        try:
            return str(uuid.UUID(v))
        except ValueError:
            raise PydanticCustomError("service_id", "Select a valid service") from None

    @field_validator("booking_date")
    @classmethod
    def not_before_tomorrow(cls, v: date, info: ValidationInfo) -> date:
        if v < _today(info) + timedelta(days=1):
            raise PydanticCustomError("booking_date", "Booking date must be tomorrow or later")
        return v

    @field_validator("booking_time")
    @classmethod
    def known_slot(cls, v: str) -> str:
        if not TIME_PATTERN.match(v):
            raise PydanticCustomError("booking_time", "Booking time must use the HH:MM format")
        if v not in TIME_SLOTS:
            raise PydanticCustomError("booking_time", "Booking time must be one of the available slots")
        return v


class ProfileUpdate(BaseModel):
    full_name: str = Field(min_length=2, max_length=100)
    phone: Optional[str] = Field(default=None, pattern=PHONE_DIGITS_PATTERN)
    address: Optional[str] = Field(default=None, max_length=500)

    @field_validator("phone", "address", mode="before")
    @classmethod
    def blank_is_absent(cls, v):
        return _blank_to_none(v)


class ContactCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(default=None, pattern=CONTACT_PHONE_PATTERN)
    subject: str = Field(min_length=3, max_length=100)
    message: str = Field(min_length=10, max_length=2000)

    @field_validator("phone", mode="before")
    @classmethod
    def blank_is_absent(cls, v):
        return _blank_to_none(v)


class ServiceBase(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    price: float = Field(ge=0, le=MAX_PRICE)
    duration_minutes: Optional[int] = Field(default=None, ge=15, le=480)
    icon: Optional[str] = None


class ServiceCreate(ServiceBase):
    is_active: bool = True


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    price: Optional[float] = Field(default=None, ge=0, le=MAX_PRICE)
    duration_minutes: Optional[int] = Field(default=None, ge=15, le=480)
    icon: Optional[str] = None
    is_active: Optional[bool] = None


def _check_image_url(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    parsed = urlparse(v)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise PydanticCustomError("image_url", "Image URL is not valid")
    return v


class ProductCreate(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    price: float = Field(ge=0, le=MAX_PRICE)
    stock: int = Field(ge=0, le=10_000)
    category: str = Field(min_length=1, max_length=50)
    image_url: Optional[str] = None
    is_active: bool = True

    @field_validator("image_url", mode="before")
    @classmethod
    def blank_is_absent(cls, v):
        return _blank_to_none(v)

    @field_validator("image_url")
    @classmethod
    def http_url(cls, v):
        return _check_image_url(v)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    price: Optional[float] = Field(default=None, ge=0, le=MAX_PRICE)
    stock: Optional[int] = Field(default=None, ge=0, le=10_000)
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    image_url: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("image_url", mode="before")
    @classmethod
    def blank_is_absent(cls, v):
        return _blank_to_none(v)

    @field_validator("image_url")
    @classmethod
    def http_url(cls, v):
        return _check_image_url(v)


# --- Admin commands ---

class StatusUpdate(BaseModel):
    status: ReservationStatus


class RepairStatusUpdate(BaseModel):
    repair_status: RepairStatus


class NotesUpdate(BaseModel):
    admin_notes: Optional[str] = None


class ConsultationStatusUpdate(BaseModel):
    status: ConsultationStatus


# --- Output shapes ---

class ProfileOut(BaseModel):
    id: str
    full_name: Optional[str]
    email: str
    phone: Optional[str]
    address: Optional[str]
    role: str
    class Config:
        from_attributes = True


class ServiceOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float
    duration_minutes: Optional[int] = None
    icon: Optional[str] = None
    is_active: bool
    class Config:
        from_attributes = True


class ProductOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float
    stock: int
    category: str
    image_url: Optional[str] = None
    is_active: bool
    created_at: datetime
    class Config:
        from_attributes = True


class TestimonialOut(BaseModel):
    id: str
    name: str
    role: str
    content: str
    rating: int
    avatar_url: Optional[str] = None
    class Config:
        from_attributes = True


class ConsultationOut(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: str
    status: str
    created_at: datetime
    class Config:
        from_attributes = True


class ServiceBrief(BaseModel):
    name: str
    price: float
    class Config:
        from_attributes = True


class CustomerBrief(BaseModel):
    full_name: Optional[str] = None
    email: str
    class Config:
        from_attributes = True


class ReservationOut(BaseModel):
    id: str
    user_id: str
    service_id: str
    booking_date: date
    booking_time: Optional[str]
    device_info: Optional[str] = None
    problem_description: Optional[str] = None
    status: str
    repair_status: str
    created_at: datetime
    service: Optional[ServiceBrief] = None
    class Config:
        from_attributes = True


class AdminReservationOut(ReservationOut):
    admin_notes: Optional[str] = None
    user: Optional[CustomerBrief] = None


class ReservationResult(BaseModel):
    message: str
    reservation: ReservationOut


class AdminReservationResult(BaseModel):
    message: str
    reservation: AdminReservationOut


class ProfileResult(BaseModel):
    message: str
    profile: ProfileOut


class ConsultationResult(BaseModel):
    message: str
    consultation: ConsultationOut


class DeleteResult(BaseModel):
    ok: bool = True
    message: str


# --- Read views ---

class DashboardTotals(BaseModel):
    reservations: int
    products: int
    services: int
    users: int


class AdminDashboardOut(BaseModel):
    totals: DashboardTotals
    repair_status_counts: Dict[str, int]
    recent_reservations: List[AdminReservationOut]
    recent_consultations: List[ConsultationOut]


class CustomerCounts(BaseModel):
    total: int
    active: int
    completed: int
    cancelled: int


class CustomerDashboardOut(BaseModel):
    profile: ProfileOut
    counts: CustomerCounts
    active: List[ReservationOut]
    history: List[ReservationOut]


class CalendarDayOut(BaseModel):
    day: date
    in_month: bool
    total: int
    visible: List[AdminReservationOut]
    overflow: int


class CalendarOut(BaseModel):
    year: int
    month: int
    start: date
    end: date
    days: List[CalendarDayOut]


class PublicStats(BaseModel):
    total_services: int
    total_customers: int
    total_reservations: int
    completed_repairs: int
