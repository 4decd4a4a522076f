from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    AGENT = "agent"

    def __str__(self):
        return self.value


class ServiceCategory(str, Enum):
    TRANSPORTATION = "transportation"
    GUIDE_PERSONNEL = "guide_personnel"
    ENTRANCE_FEES = "entrance_fees"
    ACCOMMODATION = "accommodation"
    MEALS = "meals"
    OPTIONAL_EXTRAS = "optional_extras"
    OTHER = "other"

    def __str__(self):
        return self.value


class CostBasis(str, Enum):
    PER_PERSON = "per_person"
    PER_GROUP = "per_group"
    PER_NIGHT = "per_night"
    PER_DAY = "per_day"
    FLAT_RATE = "flat_rate"

    def __str__(self):
        return self.value


class Currency(str, Enum):
    EGP = "EGP"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"

    def __str__(self):
        return self.value


class AccommodationMode(str, Enum):
    PER_PERSON = "per_person"
    PER_ROOM = "per_room"

    def __str__(self):
        return self.value


class PricingProfile(str, Enum):
    BASE = "Base"
    TICKETS = "+Tickets"
    TICKETS_LUNCH = "+Tickets+Lunch"

    def __str__(self):
        return self.value


class GroupCostMode(str, Enum):
    SHARED = "shared"
    SPLIT = "split"

    def __str__(self):
        return self.value


class ImportStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def __str__(self):
        return self.value


class AuditAction(str, Enum):
    CREATE_CATALOG_ENTRY = "create_catalog_entry"
    UPDATE_CATALOG_ENTRY = "update_catalog_entry"
    DEACTIVATE_CATALOG_ENTRY = "deactivate_catalog_entry"
    IMPORT_CATALOG = "import_catalog"
    CREATE_QUOTATION = "create_quotation"
    DELETE_QUOTATION = "delete_quotation"
    REPRICE_QUOTATION = "reprice_quotation"
    LOGIN = "login"

    def __str__(self):
        return self.value
