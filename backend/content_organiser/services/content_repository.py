"""
Content repository: stateless request/response access to content_items.

Storage failures are rolled back, logged and raised as GatewayError.
Missing ids and rejected payloads raise ContentItemNotFoundError and
ContentValidationError for the caller to report.
"""
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from content_organiser.core.config import get_settings
from content_organiser.core.exceptions import (ContentItemNotFoundError,
                                               ContentValidationError,
                                               GatewayError)
from content_organiser.core.logging_config import LoggingConfig
from content_organiser.core.metrics import (cleanup_deleted_items_total,
                                            content_gateway_errors_total)
from content_organiser.models.content_item import (ContentItemRecord,
                                                   ContentStage)
from content_organiser.schemas.content import (ContentItem, ContentItemCreate,
                                               ContentItemUpdate)
from content_organiser.utils.datetime_utils import utc_now_naive

logger = LoggingConfig.get_logger(__name__)


def _validation_message(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        field = ".".join(str(loc) for loc in err.get("loc", ())) or "payload"
        parts.append(f"{field}: {err.get('msg')}")
    return "; ".join(parts)


def _to_items(rows) -> List[ContentItem]:
    items = []
    for row in rows:
        try:
            items.append(ContentItem.model_validate(row))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed content item {row.id}: {_validation_message(e)}",
                extra={"item_id": row.id}
            )
    return items


class ContentRepository:
    """CRUD and range queries over content items"""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, error: SQLAlchemyError) -> GatewayError:
        self.db.rollback()
        content_gateway_errors_total.labels(operation=operation).inc()
        logger.error(f"Content repository {operation} failed: {error}", exc_info=True)
        return GatewayError(f"{operation} failed", {"operation": operation})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def fetch_range(self, start_date: date, end_date: date) -> List[ContentItem]:
        """Backlog items plus items scheduled within [start_date, end_date]"""
        if start_date > end_date:
            raise ContentValidationError(
                f"start_date {start_date} is after end_date {end_date}",
                {"start_date": str(start_date), "end_date": str(end_date)},
            )
        try:
            rows = self.db.query(ContentItemRecord).filter(
                or_(
                    ContentItemRecord.scheduled_date.is_(None),
                    and_(
                        ContentItemRecord.scheduled_date >= start_date,
                        ContentItemRecord.scheduled_date <= end_date,
                    ),
                )
            ).order_by(ContentItemRecord.created_at.desc()).all()
        except SQLAlchemyError as e:
            raise self._fail("fetch_range", e) from e
        return _to_items(rows)

    def fetch_backlog(self) -> List[ContentItem]:
        """Unscheduled items, most recently created first"""
        try:
            rows = self.db.query(ContentItemRecord).filter(
                ContentItemRecord.scheduled_date.is_(None)
            ).order_by(ContentItemRecord.created_at.desc()).all()
        except SQLAlchemyError as e:
            raise self._fail("fetch_backlog", e) from e
        return _to_items(rows)

    def get(self, item_id: str) -> ContentItem:
        return ContentItem.model_validate(self._get_row(item_id))

    def _get_row(self, item_id: str) -> ContentItemRecord:
        try:
            row = self.db.query(ContentItemRecord).filter(ContentItemRecord.id == item_id).first()
        except SQLAlchemyError as e:
            raise self._fail("get", e) from e
        if row is None:
            raise ContentItemNotFoundError(item_id)
        return row

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, data: Union[ContentItemCreate, Dict[str, Any]]) -> ContentItem:
        """Insert an item; the server assigns id, created_at and updated_at"""
        if not isinstance(data, ContentItemCreate):
            try:
                data = ContentItemCreate.model_validate(data)
            except ValidationError as e:
                raise ContentValidationError(_validation_message(e)) from e

        values = data.model_dump()
        values["platform"] = data.platform.value
        values["stage"] = data.stage.value
        now = utc_now_naive()
        row = ContentItemRecord(created_at=now, updated_at=now, **values)
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            raise self._fail("create", e) from e

        logger.info(
            "Created content item",
            extra={"item_id": row.id, "stage": row.stage, "scheduled_date": str(row.scheduled_date)}
        )
        return ContentItem.model_validate(row)

    def update(self, item_id: str, patch: Union[ContentItemUpdate, Dict[str, Any]]) -> ContentItem:
        """Apply a partial update to an existing item"""
        if not isinstance(patch, ContentItemUpdate):
            try:
                patch = ContentItemUpdate.model_validate(patch)
            except ValidationError as e:
                raise ContentValidationError(_validation_message(e)) from e

        changes = patch.model_dump(exclude_unset=True)
        row = self._get_row(item_id)
        for field, value in changes.items():
            if isinstance(value, Enum):
                value = value.value
            setattr(row, field, value)
        row.updated_at = utc_now_naive()

        try:
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            raise self._fail("update", e) from e

        logger.info("Updated content item", extra={"item_id": item_id, "fields": sorted(changes)})
        return ContentItem.model_validate(row)

    def set_scheduled_date(self, item_id: str, scheduled_date: Optional[date]) -> ContentItem:
        return self.update(item_id, ContentItemUpdate(scheduled_date=scheduled_date))

    def set_stage(self, item_id: str, stage: ContentStage) -> ContentItem:
        return self.update(item_id, ContentItemUpdate(stage=stage))

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def cleanup(self, keep_days: int) -> Dict[str, Any]:
        """Delete items created more than keep_days ago"""
        settings = get_settings()
        if not settings.cleanup_min_keep_days <= keep_days <= settings.cleanup_max_keep_days:
            raise ContentValidationError(
                f"keep_days must be between {settings.cleanup_min_keep_days} "
                f"and {settings.cleanup_max_keep_days}",
                {"keep_days": keep_days},
            )

        cutoff = utc_now_naive() - timedelta(days=keep_days)
        try:
            deleted = self.db.query(ContentItemRecord).filter(
                ContentItemRecord.created_at < cutoff
            ).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("cleanup", e) from e

        cleanup_deleted_items_total.inc(deleted)
        logger.warning(
            "Cleanup removed old content",
            extra={"deleted_items": deleted, "keep_days": keep_days}
        )
        return {
            "deleted_items": deleted,
            "keep_days": keep_days,
            "cutoff": cutoff.isoformat(),
        }
