"""
Data models for pickup records and the customer / agency profiles
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PickupStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


@dataclass
class Identity:
    """Authenticated identity as reported by the auth provider"""
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None


def derive_full_address(flat_no: Optional[str], street: Optional[str], area: Optional[str]) -> str:
    """Build the stored profile address from the registration fields"""
    if flat_no:
        return f"{flat_no}, {street or area or ''}"
    return street or area or ""


class PickupRecord(BaseModel):
    """One scheduled pickup, as stored in the pickups collection"""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    owner_id: str = Field(..., alias="uid")
    customer_name: str = Field("Customer", alias="customerName")
    waste_types: List[str] = Field(default_factory=list, alias="wasteTypes")
    sub_type: Optional[str] = Field(None, alias="subType")
    address: str = ""
    date: str = ""
    time: str = ""
    status: PickupStatus = PickupStatus.PENDING
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    @property
    def primary_type(self) -> Optional[str]:
        """First waste type; used for routing and partner filtering"""
        return self.waste_types[0] if self.waste_types else None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "PickupRecord":
        """Normalize a raw store document, filling the display defaults"""
        waste_types = doc.get("wasteTypes") or []
        if isinstance(waste_types, str):
            waste_types = [waste_types]
        return cls(
            id=doc.get("id"),
            uid=doc.get("uid") or "",
            customerName=doc.get("customerName") or "Customer",
            wasteTypes=list(waste_types),
            subType=doc.get("subType"),
            address=doc.get("address") or "",
            date=doc.get("date") or "",
            time=doc.get("time") or "",
            status=doc.get("status") or PickupStatus.PENDING,
            createdAt=doc.get("createdAt"),
        )

    def to_document(self) -> Dict[str, Any]:
        """Serialize for the store; id and createdAt are left to the store"""
        doc = self.model_dump(by_alias=True, exclude={"id", "created_at"}, mode="json")
        if doc.get("subType") is None:
            doc.pop("subType", None)
        return doc


class UserProfile(BaseModel):
    """Customer profile document (users collection)"""

    model_config = ConfigDict(populate_by_name=True)

    uid: str
    name: str
    email: str = ""
    phone: str = ""
    area: str = ""
    flat_no: str = Field("", alias="flatNo")
    street: str = ""
    full_address: str = Field("", alias="fullAddress")

    @classmethod
    def minimal(cls, identity: Identity) -> "UserProfile":
        """Fallback profile reconstructed from identity data alone"""
        email = identity.email or ""
        name = identity.display_name or (email.split("@")[0] if email else "") or "User"
        return cls(uid=identity.uid, name=name, email=email)


class AgencyProfile(BaseModel):
    """Partner agency profile document (agencies collection)"""

    model_config = ConfigDict(populate_by_name=True)

    uid: str
    agency_name: str = Field("", alias="agencyName")
    email: str = ""
    mobile: str = ""
    gst: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    coords: str = ""
    handled_wastes: List[str] = Field(default_factory=list, alias="handledWastes")

    @classmethod
    def minimal(cls, identity: Identity) -> "AgencyProfile":
        """Fallback profile; an empty portfolio sees every category"""
        return cls(uid=identity.uid, agencyName=identity.display_name or "", email=identity.email or "")


class AgencyDraft(BaseModel):
    """Partner registration form state"""

    model_config = ConfigDict(populate_by_name=True)

    agency_name: str = Field("", alias="agencyName")
    mobile: str = ""
    email: str = ""
    gst: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    coords: str = ""
    handled_wastes: List[str] = Field(default_factory=list, alias="handledWastes")

    def toggle_waste_type(self, waste_type: str) -> None:
        if waste_type in self.handled_wastes:
            self.handled_wastes = [w for w in self.handled_wastes if w != waste_type]
        else:
            self.handled_wastes = [*self.handled_wastes, waste_type]

    def apply_pin(self, lat: float, lng: float, geocoded: Optional["GeocodedAddress"] = None) -> None:
        """Record the hub pin; address fields change only when geocoding succeeded"""
        self.coords = format_coords(lat, lng)
        if geocoded is None:
            return
        self.street = geocoded.street
        self.city = geocoded.city
        self.state = geocoded.state
        self.pincode = geocoded.postal_code


class GeocodedAddress(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""


def format_coords(lat: float, lng: float) -> str:
    return f"{lat:.6f}, {lng:.6f}"
