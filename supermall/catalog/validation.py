"""
Catalog Validation Rules

Rule-based checks run before every catalog write. A rule set is built once per
entity kind and validates one payload at a time:

- Required fields (present on creation; updates may omit but never clear them)
- Minimum string lengths after trimming
- Numeric ranges and integrality
- Format checks (email, phone)
- Cross-field rules (offer validity window)

Validation fails fast: the first violated rule raises ValidationError naming
the offending field.
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from supermall.errors import ValidationError
from supermall.timeutils import parse_timestamp, utcnow

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")
PHONE_SEPARATORS = re.compile(r"[\s\-()]")


def is_valid_email(email: str) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email))


def is_valid_phone(phone: str) -> bool:
    if not isinstance(phone, str):
        return False
    return bool(PHONE_PATTERN.match(PHONE_SEPARATORS.sub("", phone)))


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


@dataclass(frozen=True)
class RuleContext:
    """Per-call inputs shared by all checks"""
    is_update: bool
    now: datetime


Check = Callable[[Mapping[str, Any], RuleContext], None]


class RuleSet:
    """
    Ordered validation rules for one entity kind.

    Example:
        rules = (
            RuleSet("shop")
            .add_required("name", "floor")
            .add_min_length_check("name", 2, label="Shop name")
            .add_range_check("floor", min_value=1, max_value=10, integer=True)
        )
        rules.validate(payload)
    """

    def __init__(self, entity: str):
        self.entity = entity
        self._required: List[str] = []
        self._checks: List[Check] = []

    @property
    def required_fields(self) -> List[str]:
        return list(self._required)

    def add_required(self, *fields: str) -> "RuleSet":
        """Fields that must be present and non-blank on creation"""
        self._required.extend(fields)
        return self

    def add_string_check(self, field: str) -> "RuleSet":
        """Field, when present, must be a string"""
        def check(data: Mapping[str, Any], ctx: RuleContext) -> None:
            value = data.get(field)
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"{field} must be a string", field=field)

        self._checks.append(check)
        return self

    def add_min_length_check(
        self,
        field: str,
        min_length: int,
        label: Optional[str] = None,
    ) -> "RuleSet":
        """Trimmed string length must reach min_length"""
        label = label or field

        def check(data: Mapping[str, Any], ctx: RuleContext) -> None:
            value = data.get(field)
            if value is None:
                return
            if not isinstance(value, str):
                raise ValidationError(f"{field} must be a string", field=field)
            if len(value.strip()) < min_length:
                raise ValidationError(
                    f"{label} must be at least {min_length} characters long",
                    field=field,
                )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        field: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        integer: bool = False,
        message: Optional[str] = None,
    ) -> "RuleSet":
        """Numeric value within [min_value, max_value], optionally integral"""
        if message is None:
            message = f"{field} must be between {min_value} and {max_value}"

        def check(data: Mapping[str, Any], ctx: RuleContext) -> None:
            value = data.get(field)
            if value is None:
                return
            if not is_number(value) or not math.isfinite(value):
                raise ValidationError(message, field=field)
            if integer and not float(value).is_integer():
                raise ValidationError(message, field=field)
            if min_value is not None and value < min_value:
                raise ValidationError(message, field=field)
            if max_value is not None and value > max_value:
                raise ValidationError(message, field=field)

        self._checks.append(check)
        return self

    def add_mapping_check(self, field: str) -> "RuleSet":
        """Field, when present, must be an object"""
        def check(data: Mapping[str, Any], ctx: RuleContext) -> None:
            value = data.get(field)
            if value is not None and not isinstance(value, Mapping):
                raise ValidationError(f"{field} must be an object", field=field)

        self._checks.append(check)
        return self

    def add_string_list_check(self, field: str) -> "RuleSet":
        """Field, when present, must be a list of non-blank strings"""
        def check(data: Mapping[str, Any], ctx: RuleContext) -> None:
            value = data.get(field)
            if value is None:
                return
            if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple, set, frozenset)):
                raise ValidationError(f"{field} must be a list", field=field)
            if any(not isinstance(item, str) or is_blank(item) for item in value):
                raise ValidationError(f"{field} must only contain non-empty strings", field=field)

        self._checks.append(check)
        return self

    def add_custom_check(self, check: Check) -> "RuleSet":
        """Add a check function that raises ValidationError on failure"""
        self._checks.append(check)
        return self

    def validate(
        self,
        data: Mapping[str, Any],
        is_update: bool = False,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Run every rule against data.

        Args:
            data: Payload to validate
            is_update: Partial update; required fields may be omitted, not cleared
            now: Reference time for time-relative rules

        Raises:
            ValidationError: On the first violated rule
        """
        if not isinstance(data, Mapping):
            raise ValidationError(f"{self.entity} data must be an object")

        ctx = RuleContext(is_update=is_update, now=now or utcnow())

        try:
            for field in self._required:
                # Updates may omit a required field but never clear it
                if is_update and field not in data:
                    continue
                if is_blank(data.get(field)):
                    raise ValidationError(f"{field} is required", field=field)

            for check in self._checks:
                check(data, ctx)
        except ValidationError as e:
            logger.warning(
                f"Validation failed: {self.entity}",
                message=e.message,
                field=e.field,
                is_update=is_update,
            )
            raise


def _check_contact(data: Mapping[str, Any], ctx: RuleContext) -> None:
    contact = data.get("contact")
    if contact is None:
        return
    if not isinstance(contact, Mapping):
        raise ValidationError("contact must be an object", field="contact")
    email = contact.get("email")
    if not is_blank(email) and not is_valid_email(email):
        raise ValidationError("Invalid email format", field="contact.email")
    phone = contact.get("phone")
    if not is_blank(phone) and not is_valid_phone(phone):
        raise ValidationError("Invalid phone number format", field="contact.phone")


def _read_timestamp(data: Mapping[str, Any], field: str) -> Optional[datetime]:
    try:
        return parse_timestamp(data.get(field))
    except ValueError:
        raise ValidationError(f"{field} must be a valid date", field=field) from None


def _check_validity_window(data: Mapping[str, Any], ctx: RuleContext) -> None:
    valid_from = _read_timestamp(data, "validFrom")
    valid_to = _read_timestamp(data, "validTo")

    if valid_from and valid_to and valid_from >= valid_to:
        raise ValidationError("Valid from date must be before valid to date", field="validFrom")

    # Future expiry is a creation-time rule only
    if valid_to and not ctx.is_update and valid_to <= ctx.now:
        raise ValidationError("Valid to date must be in the future", field="validTo")


def create_shop_rules() -> RuleSet:
    """Create rule set for shops"""
    return (
        RuleSet("shop")
        .add_required("name", "description", "category", "floor", "contact")
        .add_min_length_check("name", 2, label="Shop name")
        .add_min_length_check("description", 10, label="Shop description")
        .add_string_check("category")
        .add_range_check("floor", min_value=1, max_value=10, integer=True,
                         message="Floor must be between 1 and 10")
        .add_mapping_check("location")
        .add_custom_check(_check_contact)
        .add_string_list_check("images")
    )


def create_product_rules() -> RuleSet:
    """Create rule set for products"""
    return (
        RuleSet("product")
        .add_required("name", "description", "price", "category", "shopId", "stock")
        .add_min_length_check("name", 2, label="Product name")
        .add_min_length_check("description", 10, label="Product description")
        .add_range_check("price", min_value=0, message="Price must be a valid positive number")
        .add_range_check("stock", min_value=0, integer=True,
                         message="Stock must be a valid non-negative integer")
        .add_string_check("category")
        .add_string_check("shopId")
        .add_mapping_check("specifications")
        .add_string_list_check("images")
    )


def create_offer_rules() -> RuleSet:
    """Create rule set for offers"""
    return (
        RuleSet("offer")
        .add_required("title", "description", "discount", "shopId", "validFrom", "validTo")
        .add_min_length_check("title", 3, label="Offer title")
        .add_min_length_check("description", 10, label="Offer description")
        .add_range_check("discount", min_value=0, max_value=100,
                         message="Discount must be between 0 and 100 percent")
        .add_string_check("shopId")
        .add_string_list_check("productIds")
        .add_custom_check(_check_validity_window)
    )


def create_category_rules() -> RuleSet:
    """Create rule set for categories"""
    return (
        RuleSet("category")
        .add_required("name")
        .add_min_length_check("name", 2, label="Category name")
        .add_string_check("description")
        .add_range_check("floor", min_value=1, max_value=10, integer=True,
                         message="Floor must be between 1 and 10")
        .add_string_check("icon")
    )


SHOP_RULES = create_shop_rules()
PRODUCT_RULES = create_product_rules()
OFFER_RULES = create_offer_rules()
CATEGORY_RULES = create_category_rules()


def validate_shop_data(data: Mapping[str, Any], is_update: bool = False) -> None:
    SHOP_RULES.validate(data, is_update=is_update)


def validate_product_data(data: Mapping[str, Any], is_update: bool = False) -> None:
    PRODUCT_RULES.validate(data, is_update=is_update)


def validate_offer_data(
    data: Mapping[str, Any],
    is_update: bool = False,
    now: Optional[datetime] = None,
) -> None:
    OFFER_RULES.validate(data, is_update=is_update, now=now)


def validate_category_data(data: Mapping[str, Any], is_update: bool = False) -> None:
    CATEGORY_RULES.validate(data, is_update=is_update)
