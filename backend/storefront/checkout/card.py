# Overview: Card number helpers and checkout form validation.

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

_VISA = re.compile(r"^4\d{12}(\d{3})?(\d{3})?$")
_MASTERCARD = re.compile(r"^(5[1-5]\d{14}|2(2[2-9]\d{12}|[3-6]\d{13}|7[01]\d{12}|720\d{12}))$")
_CVC = re.compile(r"^\d{3,4}$")


@dataclass
class CustomerForm:
    full_name: str = ""
    email: str = ""
    phone: str = ""

    def to_payload(self) -> dict:
        return {"fullName": self.full_name, "email": self.email, "phone": self.phone}


@dataclass
class DeliveryForm:
    address_line1: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    notes: str = ""

    def to_payload(self) -> dict:
        return {
            "addressLine1": self.address_line1,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postal_code,
            "notes": self.notes,
        }


@dataclass
class CardForm:
    card_number: str = ""
    exp_month: str = ""
    exp_year: str = ""
    cvc: str = ""
    holder_name: str = ""

    @property
    def digits(self) -> str:
        return re.sub(r"\D", "", self.card_number)

    def to_payload(self) -> dict:
        return {
            "cardNumber": self.card_number,
            "expMonth": self.exp_month,
            "expYear": self.exp_year,
            "cvc": self.cvc,
            "holderName": self.holder_name,
        }


def format_card_number(value: str) -> str:
    """Keep digits only (max 19) and group them in blocks of four."""
    digits = re.sub(r"\D", "", value)[:19]
    return " ".join(digits[i:i + 4] for i in range(0, len(digits), 4))


def detect_card_brand(digits: str) -> Optional[str]:
    if _VISA.match(digits):
        return "VISA"
    if _MASTERCARD.match(digits):
        return "MASTERCARD"
    return None


def luhn_check(value: str) -> bool:
    total = 0
    double = False
    for char in reversed(value):
        if not char.isdigit():
            return False
        digit = int(char)
        if double:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
        double = not double
    return total % 10 == 0


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value.strip())
    except ValueError:
        return None


def expiry_year(value: str) -> Optional[int]:
    """Two-digit years are read as 20xx."""
    year = _parse_int(value)
    if year is None:
        return None
    if len(value.strip()) == 2:
        return 2000 + year
    return year


def validate_checkout_form(
    customer: CustomerForm,
    delivery: DeliveryForm,
    card: CardForm,
    today: Optional[date] = None,
) -> dict[str, str]:
    """
    Field name -> message for every problem on the checkout form.
    An empty dict means the form can be submitted.
    """
    today = today or date.today()
    errors: dict[str, str] = {}

    if not customer.full_name.strip():
        errors["fullName"] = "Full name is required."
    if "@" not in customer.email:
        errors["email"] = "Enter a valid email."
    if len(re.sub(r"\D", "", customer.phone)) < 7:
        errors["phone"] = "Phone number is too short."
    if not delivery.address_line1.strip():
        errors["addressLine1"] = "Address is required."
    if not delivery.city.strip():
        errors["city"] = "City is required."
    if not delivery.state.strip():
        errors["state"] = "State is required."
    if not delivery.postal_code.strip():
        errors["postalCode"] = "Postal code is required."

    digits = card.digits
    if not digits:
        errors["cardNumber"] = "Card number is required."
    elif not detect_card_brand(digits) or not luhn_check(digits):
        errors["cardNumber"] = "Only valid VISA or MasterCard numbers."

    if not card.holder_name.strip():
        errors["holderName"] = "Card holder name is required."

    month = _parse_int(card.exp_month)
    year = expiry_year(card.exp_year)
    month_valid = month is not None and 1 <= month <= 12
    if not month_valid:
        errors["expMonth"] = "Invalid month."
    if year is None or year < today.year:
        errors["expYear"] = "Invalid year."
    elif month_valid and year == today.year and month < today.month:
        errors["expMonth"] = "Card is expired."

    if not _CVC.match(card.cvc):
        errors["cvc"] = "CVC must be 3 or 4 digits."

    return errors
