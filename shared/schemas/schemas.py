"""
shared/schemas/schemas.py
All Pydantic v2 request/response schemas for the platform.

Python attributes are snake_case; the wire format keeps the field names
the web and admin frontends already use (``_id``, ``fullname``,
``paymentDetails`` keys in camelCase, ``booking_no``), expressed as aliases.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, model_validator

from shared.models.models import (
    AccountStatus,
    AssignmentStatus,
    BookingStatus,
    PaymentStatus,
    TicketPriority,
    TicketStatus,
    UserRole,
)


# ── Base ──────────────────────────────────────────────────────

class BaseSchema(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        use_enum_values=True,
        populate_by_name=True,
    )


class DocumentSchema(BaseSchema):
    """Response base: exposes the primary key as ``_id``."""
    id: uuid.UUID = Field(..., alias="_id")


class MessageResponse(BaseSchema):
    message: str
    success: bool = True


# ── Catalog: Package ──────────────────────────────────────────

class CardDetail(BaseSchema):
    product_name: Optional[str] = None
    quantity: Optional[int] = None


class PackageDetailBlock(BaseSchema):
    title: Optional[str] = None
    subtitle: List[str] = Field(default_factory=list)


class BillDetail(BaseSchema):
    type: Optional[str] = None
    amount: Optional[float] = None


class PackageCreateRequest(BaseSchema):
    service_id: uuid.UUID = Field(..., alias="serviceId")
    event_id: uuid.UUID = Field(..., alias="eventId")
    name: str = Field(..., min_length=1, max_length=255)
    price: float = Field(..., ge=0)
    booking_price: Optional[float] = Field(None, ge=0)
    card_details: List[CardDetail] = Field(default_factory=list)
    package_details: List[PackageDetailBlock] = Field(default_factory=list)
    bill_details: List[BillDetail] = Field(default_factory=list)
    category: Optional[str] = Field(None, max_length=100)


class PackageUpdateRequest(PackageCreateRequest):
    booking_price: float = Field(..., ge=0)


class PackageResponse(DocumentSchema):
    service_id: uuid.UUID = Field(..., alias="serviceId")
    event_id: uuid.UUID = Field(..., alias="eventId")
    name: str
    price: float
    booking_price: Optional[float] = None
    card_details: List[Dict[str, Any]] = Field(default_factory=list)
    package_details: List[Dict[str, Any]] = Field(default_factory=list)
    bill_details: List[Dict[str, Any]] = Field(default_factory=list)
    category: Optional[str] = None


# ── Catalog: Event / Service ──────────────────────────────────

class EventResponse(DocumentSchema):
    event_name: str = Field(..., alias="eventName")
    service_id: uuid.UUID = Field(..., alias="serviceId")
    description: Optional[str] = None
    image: Optional[str] = None
    form_id: Optional[uuid.UUID] = Field(None, alias="formId")
    package_ids: List[uuid.UUID] = Field(default_factory=list, alias="packageIds")


class EventDetailResponse(EventResponse):
    packages: List[PackageResponse] = Field(default_factory=list)


class ServiceCreateRequest(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)


class ServiceRename(BaseSchema):
    id: Optional[uuid.UUID] = Field(None, alias="_id")
    name: Optional[str] = Field(None, max_length=255)


class ServiceBulkUpdateRequest(BaseSchema):
    services_to_update: List[ServiceRename] = Field(..., min_length=1, alias="servicesToUpdate")


class ServiceResponse(DocumentSchema):
    name: str
    events: List[EventResponse] = Field(default_factory=list)


# ── Catalog: Form ─────────────────────────────────────────────

class FormField(BaseSchema):
    name: str = Field(..., min_length=1)
    label: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    required: bool = False
    component: Literal["input", "select", "textarea"]
    options: List[str] = Field(default_factory=list)


class FormUpsertRequest(BaseSchema):
    form_title: str = Field(..., min_length=1, alias="formTitle")
    event_type: uuid.UUID = Field(..., alias="eventType")
    fields: List[FormField]


class FormUpdateRequest(BaseSchema):
    form_title: Optional[str] = Field(None, min_length=1, alias="formTitle")
    fields: List[FormField]


class FormResponse(DocumentSchema):
    form_title: str = Field(..., alias="formTitle")
    event_type: uuid.UUID = Field(
        ...,
        validation_alias=AliasChoices("event_id", "eventType"),
        serialization_alias="eventType",
    )
    fields: List[Dict[str, Any]]
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")


# ── Banner ────────────────────────────────────────────────────

class BannerResponse(DocumentSchema):
    url: str = Field(..., validation_alias=AliasChoices("image", "url"))
    index: int
    title: Optional[str] = None
    subtitle: Optional[str] = None


class BannerUploadResponse(BaseSchema):
    message: str
    banners: List[BannerResponse]


# ── User ──────────────────────────────────────────────────────

class UserPublicResponse(DocumentSchema):
    fullname: str


class UserSummary(DocumentSchema):
    fullname: str
    email: str
    contact: str
    role: UserRole
    profile_image: Optional[str] = Field(None, alias="profileImage")


class UserResponse(DocumentSchema):
    fullname: str
    contact: str
    email: str
    role: UserRole
    status: Optional[AccountStatus] = None
    date_of_birth: Optional[str] = Field(None, alias="dateOfBirth")
    aadhar_card: Optional[str] = Field(None, alias="aadharCard")
    pan_card: Optional[str] = Field(None, alias="panCard")
    address: Optional[str] = None
    profile_image: Optional[str] = Field(None, alias="profileImage")
    cover_image: Optional[str] = Field(None, alias="coverImage")
    partner_id: Optional[uuid.UUID] = Field(None, alias="partnerId")
    wishlist: List[PackageResponse] = Field(default_factory=list)
    created_at: datetime = Field(..., alias="createdAt")


class CheckLoginResponse(BaseSchema):
    is_logged_in: bool = Field(..., alias="isLoggedIn")
    user_exists_in_db: bool = Field(..., alias="userExistsInDb")
    user: UserResponse


class WishlistRequest(BaseSchema):
    package_id: uuid.UUID = Field(..., alias="packageId")


class WishlistResponse(BaseSchema):
    message: str
    wishlist: List[PackageResponse]


# ── Auth ──────────────────────────────────────────────────────

class RegisterRequest(BaseSchema):
    fullname: str = Field(..., min_length=1, max_length=255)
    contact: str = Field(..., min_length=1, max_length=20)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    role: UserRole


class LoginRequest(BaseSchema):
    email: Optional[str] = None
    contact: Optional[str] = None
    password: str = Field(..., min_length=1)
    role: UserRole

    @model_validator(mode="after")
    def require_identifier(self) -> "LoginRequest":
        if not self.email and not self.contact:
            raise ValueError("Email or contact is required")
        return self


class AuthResponse(BaseSchema):
    message: str
    user: UserResponse
    token: str


class ChangePasswordRequest(BaseSchema):
    current_password: str = Field(..., min_length=1, alias="currentPassword")
    new_password: str = Field(..., min_length=6, max_length=128, alias="newPassword")


class ContactRequest(BaseSchema):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=20)
    email: EmailStr
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000)


# ── Notification ──────────────────────────────────────────────

class NotificationCreateRequest(BaseSchema):
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    redirect_path: Optional[str] = Field(None, max_length=500, alias="redirectPath")
    receiver_id: Optional[uuid.UUID] = Field(None, alias="receiverId")


class NotificationResponse(DocumentSchema):
    title: str
    message: str
    redirect_path: Optional[str] = Field(None, alias="redirectPath")
    sender_id: Optional[uuid.UUID] = Field(None, alias="sender")
    read: bool
    created_at: datetime = Field(..., alias="createdAt")


# ── Support ───────────────────────────────────────────────────

class SupportTicketCreateRequest(BaseSchema):
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    priority: TicketPriority


class SupportTicketResponse(DocumentSchema):
    user_id: uuid.UUID = Field(..., alias="userId")
    subject: str
    message: str
    priority: TicketPriority
    status: TicketStatus
    image: Optional[str] = None
    created_at: datetime = Field(..., alias="createdAt")


# ── Service Partner ───────────────────────────────────────────

class ServicePartnerFields(BaseSchema):
    name: Optional[str] = Field(None, max_length=255)
    registration_number: Optional[str] = Field(None, max_length=100, alias="registrationNumber")
    contact_person: Optional[str] = Field(None, max_length=255, alias="contactPerson")
    contact_number: Optional[str] = Field(None, max_length=20, alias="contactNumber")
    email: Optional[str] = Field(None, max_length=255)
    business_address: Optional[str] = Field(None, alias="businessAddress")
    employees: Optional[str] = Field(None, max_length=50)
    experience: Optional[str] = Field(None, max_length=50)
    projects: Optional[str] = Field(None, max_length=50)
    bank_name: Optional[str] = Field(None, max_length=255, alias="bankName")
    account_number: Optional[str] = Field(None, max_length=50, alias="accountNumber")
    ifsc: Optional[str] = Field(None, max_length=20)


class ServicePartnerCreateRequest(ServicePartnerFields):
    pass


class ServicePartnerUpdateRequest(ServicePartnerFields):
    status: Optional[AccountStatus] = None


class ServicePartnerSummary(DocumentSchema, ServicePartnerFields):
    status: AccountStatus
    user_id: uuid.UUID = Field(..., alias="userId")


class ServicePartnerResponse(ServicePartnerSummary):
    partner: Optional[UserSummary] = Field(None, validation_alias="user")
    created_at: datetime = Field(..., alias="createdAt")


# ── Booking ───────────────────────────────────────────────────

class BasicInfo(BaseSchema):
    model_config = ConfigDict(extra="allow")

    fullName: Optional[str] = None
    gender: Optional[str] = None
    dateOfBirth: Optional[str] = None
    email: Optional[str] = None
    phoneNumber: Optional[str] = None
    alternatePhoneNumber: Optional[str] = None
    addressLine1: Optional[str] = None
    addressLine2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None


class EventDetails(BaseSchema):
    model_config = ConfigDict(extra="allow")

    eventName: Optional[str] = None
    eventDate: Optional[str] = None
    eventStartTime: Optional[str] = None
    eventEndTime: Optional[str] = None
    venueName: Optional[str] = None
    venueAddressLine1: Optional[str] = None
    venueAddressLine2: Optional[str] = None
    venueCity: Optional[str] = None
    venuePincode: Optional[str] = None
    numberOfGuests: Optional[int] = None
    specialRequirements: Optional[str] = None


class DeliveryAddress(BaseSchema):
    model_config = ConfigDict(extra="allow")

    sameAsClientAddress: Optional[bool] = None
    recipientName: Optional[str] = None
    deliveryAddressLine1: Optional[str] = None
    deliveryAddressLine2: Optional[str] = None
    deliveryCity: Optional[str] = None
    deliveryState: Optional[str] = None
    deliveryPincode: Optional[str] = None
    deliveryContactNumber: Optional[str] = None
    additionalDeliveryInstructions: Optional[str] = None


class PackageSnapshot(BaseSchema):
    """Denormalized copy of the chosen package, frozen at booking time."""
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    price: float = Field(..., ge=0)
    booking_price: Optional[float] = None
    eventName: Optional[str] = None
    serviceName: Optional[str] = None
    card_details: List[CardDetail] = Field(default_factory=list)
    package_details: List[PackageDetailBlock] = Field(default_factory=list)
    bill_details: List[BillDetail] = Field(default_factory=list)
    category: Optional[str] = None


class PaymentDetailsInput(BaseSchema):
    """
    Checkout payment payload. ``paymentType`` is the installment count
    chosen by the client (1 = full payment, 3 = three installments).
    """
    payment_type: int = Field(..., ge=1, le=12, alias="paymentType")
    payment_method: Optional[str] = Field(None, max_length=50, alias="paymentMethod")
    razorpay_order_id: Optional[str] = Field(None, alias="razorpayOrderId")
    razorpay_payment_id: Optional[str] = Field(None, alias="razorpayPaymentId")


class PaymentDetailsUpdate(BaseSchema):
    payment_method: Optional[str] = Field(None, max_length=50, alias="paymentMethod")
    payment_type: Optional[Union[int, str]] = Field(None, alias="paymentType")
    payment_status: Optional[str] = Field(None, alias="paymentStatus")
    razorpay_order_id: Optional[str] = Field(None, alias="razorpayOrderId")
    razorpay_payment_id: Optional[str] = Field(None, alias="razorpayPaymentId")


class BookingCreateRequest(BaseSchema):
    basic_info: Optional[BasicInfo] = None
    form_details: Optional[Dict[str, Union[str, int, float, bool, None]]] = None
    event_details: Optional[EventDetails] = None
    delivery_address: Optional[DeliveryAddress] = None
    package_details: PackageSnapshot
    payment_details: PaymentDetailsInput
    agree_to_terms: Optional[bool] = Field(None, alias="agreeToTerms")
    confirm_booking_details: Optional[bool] = Field(None, alias="confirmBookingDetails")


class BookingUpdateRequest(BaseSchema):
    """
    Partial update of a booking. Which fields are present decides the
    operation: ``ordered``, ``payment_details``, a lone ``status``, or
    ``servicePartner`` together with ``assignedStatus``.
    """
    ordered: Optional[bool] = None
    payment_details: Optional[PaymentDetailsUpdate] = None
    status: Optional[BookingStatus] = None
    service_partner: Optional[uuid.UUID] = Field(None, alias="servicePartner")
    assigned_status: Optional[AssignmentStatus] = Field(None, alias="assignedStatus")
    basic_info: Optional[BasicInfo] = None
    form_details: Optional[Dict[str, Union[str, int, float, bool, None]]] = None
    event_details: Optional[EventDetails] = None
    delivery_address: Optional[DeliveryAddress] = None
    agree_to_terms: Optional[bool] = Field(None, alias="agreeToTerms")
    confirm_booking_details: Optional[bool] = Field(None, alias="confirmBookingDetails")


class InvoiceResponse(DocumentSchema):
    invoice_no: str
    booking_id: uuid.UUID = Field(..., alias="bookingId")
    payment_type: int = Field(..., alias="paymentType")
    payment_method: str = Field(..., alias="paymentMethod")
    payable_price: float = Field(..., alias="payablePrice")
    paid_amount: float = Field(..., alias="paidAmount")
    due_amount: float = Field(..., alias="dueAmount")
    payment_date: datetime = Field(..., alias="paymentDate")
    payment_status: PaymentStatus = Field(..., alias="paymentStatus")
    razorpay_order_id: Optional[str] = Field(None, alias="razorpayOrderId")
    razorpay_payment_id: Optional[str] = Field(None, alias="razorpayPaymentId")


class BookingResponse(DocumentSchema):
    booking_no: str
    user_id: uuid.UUID = Field(..., alias="userId")
    user: Optional[UserSummary] = None
    ordered: bool
    basic_info: Optional[Dict[str, Any]] = None
    form_details: Optional[Dict[str, Any]] = None
    event_details: Optional[Dict[str, Any]] = None
    delivery_address: Optional[Dict[str, Any]] = None
    package_details: Dict[str, Any]
    payment_details: Dict[str, Any]
    invoices: List[InvoiceResponse] = Field(default_factory=list)
    status: BookingStatus
    status_history: List[Dict[str, Any]] = Field(default_factory=list, alias="statusHistory")
    service_partner_id: Optional[uuid.UUID] = Field(None, alias="servicePartnerId")
    service_partner: Optional[ServicePartnerSummary] = Field(None, alias="servicePartner")
    assigned_status: Optional[AssignmentStatus] = Field(None, alias="assignedStatus")
    assigned_status_history: List[Dict[str, Any]] = Field(
        default_factory=list, alias="assignedStatusHistory"
    )
    agree_to_terms: Optional[bool] = Field(None, alias="agreeToTerms")
    confirm_booking_details: Optional[bool] = Field(None, alias="confirmBookingDetails")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")


class BookingUpdateResponse(BaseSchema):
    message: str
    updated_booking: BookingResponse = Field(..., alias="updatedBooking")


# ── Payment ───────────────────────────────────────────────────

class CreateOrderRequest(BaseSchema):
    amount: int = Field(..., gt=0)        # smallest currency unit (paise)
    currency: str = Field("INR", min_length=3, max_length=3)
    receipt: Optional[str] = Field(None, max_length=40)


class PaymentVerifyRequest(BaseSchema):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
