"""Shared utility functions.

commit_or_raise:  commits the session; rolls back and raises StorageFailureError
parse_decimal:    strict Decimal parsing for money/hours input
"""
import logging
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from cmcs.core.exceptions import StorageFailureError, ValidationError
from cmcs.models import db

logger = logging.getLogger(__name__)


# ── Database commit helper ───────────────────────────────────────────────────

def commit_or_raise(context: str = "commit") -> None:
    """Commit the current SQLAlchemy session, raising StorageFailureError on failure.

    Usage::

        db.session.add(claim)
        commit_or_raise("submit claim")

    IntegrityError   → rollback, warning, StorageFailureError
    OperationalError → rollback, exception log, StorageFailureError
    Other DB error   → rollback, exception log, StorageFailureError
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on %s: %s", context, exc.orig)
        raise StorageFailureError() from exc
    except OperationalError as exc:
        db.session.rollback()
        logger.exception("Database operational error on %s", context)
        raise StorageFailureError() from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Unexpected database error on %s", context)
        raise StorageFailureError() from exc


# ── Input parsing ────────────────────────────────────────────────────────────

def parse_decimal(value, field: str, *, default: Decimal | None = None,
                  places: int | None = None) -> Decimal:
    """Parse a number-like input to Decimal, raising ValidationError on bad input.

    Floats go through str() so 7.5 becomes Decimal("7.5"), not its binary
    expansion. Booleans are rejected even though they are ints. With
    ``places`` set, values carrying more decimal places than the column
    stores are rejected rather than rounded.
    """
    if value is None or value == "":
        if default is not None:
            return default
        raise ValidationError(f"{field} is required", details={field: "required"})
    if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
        raise ValidationError(f"{field} must be a number", details={field: "invalid"})
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field} must be a number", details={field: "invalid"}) from exc
    if not result.is_finite():
        raise ValidationError(f"{field} must be a number", details={field: "invalid"})
    if places is not None and -result.normalize().as_tuple().exponent > places:
        raise ValidationError(
            f"{field} cannot have more than {places} decimal places",
            details={field: "precision"},
        )
    return result
