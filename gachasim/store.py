"""State store for the gacha list and its JSON snapshot format.

The JSON format is the one the browser version kept under the
``gacha_list`` local-storage key: camelCase keys, ``timestamp`` as epoch
milliseconds and ``limit`` omitted for unlimited prizes.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from .db.utils import from_epoch_millis
from .models import AppSetting, Category, Gacha, Operation, Prize, Target
from .models.utils import NONE_CATEGORY_ID
from .repositories import validate_limit, validate_weight

logger = logging.getLogger(__name__)

CURRENT_GACHA_KEY = "current_gacha_id"


class GachaStore:
    """Load and save whole gacha-list snapshots through a session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def load(self) -> list[Gacha]:
        """Return every stored gacha in list order."""
        return Gacha.list_all(self._session)

    def save(self, gachas: Iterable[Gacha]) -> list[Gacha]:
        """Replace the stored gacha list with ``gachas``.

        Gachas missing from the snapshot are deleted; the others are merged
        into the session in snapshot order.

        Returns
        -------
        list[Gacha]
            The session-bound instances of the saved gachas.
        """
        snapshot = list(gachas)
        keep = {gacha.id for gacha in snapshot}
        for stored in self.load():
            if stored.id not in keep:
                self._session.delete(stored)
        self._session.flush()

        saved = []
        for index, gacha in enumerate(snapshot):
            gacha.position = index
            saved.append(self._session.merge(gacha))
        self._session.flush()
        logger.debug(f"Saved snapshot with {len(saved)} gachas")
        return saved

    @property
    def current_gacha_id(self) -> Optional[str]:
        """Selected gacha, falling back to the first one when it is gone."""
        stored = AppSetting.get_value(self._session, CURRENT_GACHA_KEY)
        if stored and self._session.get(Gacha, stored) is not None:
            return stored
        gachas = self.load()
        return gachas[0].id if gachas else None

    @current_gacha_id.setter
    def current_gacha_id(self, gacha_id: Optional[str]) -> None:
        AppSetting.set_value(self._session, CURRENT_GACHA_KEY, gacha_id)
        self._session.flush()

    def export_json(self) -> str:
        return dump_gacha_list(self.load())

    def import_json(self, payload: str) -> list[Gacha]:
        """Replace the stored gacha list with the snapshot in ``payload``."""
        return self.save(load_gacha_list(payload))


def _number(value: float) -> Any:
    return int(value) if float(value).is_integer() else value


def gacha_to_dict(gacha: Gacha) -> dict[str, Any]:
    """Serialize one gacha into the snapshot dictionary shape."""
    prizes = []
    for prize in gacha.prizes:
        item: dict[str, Any] = {
            "id": prize.id,
            "name": prize.name,
            "weight": _number(prize.weight),
        }
        if prize.limit is not None:
            item["limit"] = prize.limit
        item["categoryId"] = prize.category_id
        prizes.append(item)
    return {
        "id": gacha.id,
        "name": gacha.name,
        "targets": [{"id": t.id, "name": t.name} for t in gacha.targets],
        "categories": [{"id": c.id, "name": c.name} for c in gacha.categories],
        "prizes": prizes,
        "operationHistory": [
            {
                "id": op.id,
                "count": op.count,
                "results": dict(op.results),
                "timestamp": op.timestamp_millis,
                "target": op.target_id,
            }
            for op in gacha.operation_history
        ],
    }


def gacha_from_dict(data: dict[str, Any]) -> Gacha:
    """Build a transient :class:`Gacha` from the snapshot dictionary shape.

    Raises
    ------
    ValueError
        If a required key is missing or a numeric field is malformed.
    """
    try:
        gacha = Gacha(id=data["id"], name=data["name"])
        gacha.categories = [
            Category(id=c["id"], name=c["name"]) for c in data.get("categories", [])
        ]
        gacha.targets = [Target(id=t["id"], name=t["name"]) for t in data.get("targets", [])]
        gacha.ensure_sentinels()
        category_ids = {c.id for c in gacha.categories}
        gacha.prizes = [
            Prize(
                id=p["id"],
                name=p["name"],
                weight=validate_weight(p["weight"]),
                limit=validate_limit(p.get("limit")),
                category_id=(
                    p.get("categoryId")
                    if p.get("categoryId") in category_ids
                    else NONE_CATEGORY_ID
                ),
            )
            for p in data.get("prizes", [])
        ]
        gacha.operation_history = [
            Operation(
                id=op["id"],
                count=int(op["count"]),
                results={str(k): int(v) for k, v in op["results"].items()},
                timestamp=from_epoch_millis(op["timestamp"]),
                target_id=op["target"],
            )
            for op in data.get("operationHistory", [])
        ]
    except KeyError as exc:
        raise ValueError(f"Snapshot is missing required key {exc}") from exc

    # Composite category keys must be complete before the rows are merged.
    for child in [*gacha.categories, *gacha.targets, *gacha.prizes, *gacha.operation_history]:
        child.gacha_id = gacha.id
    return gacha


def dump_gacha_list(gachas: Iterable[Gacha]) -> str:
    """Serialize ``gachas`` into the snapshot JSON string."""
    return json.dumps([gacha_to_dict(g) for g in gachas], ensure_ascii=False)


def load_gacha_list(payload: str) -> list[Gacha]:
    """Parse a snapshot JSON string into transient gachas."""
    data = json.loads(payload)
    if not isinstance(data, list):
        raise ValueError("Snapshot must be a JSON array of gachas")
    return [gacha_from_dict(item) for item in data]


__all__ = [
    "CURRENT_GACHA_KEY",
    "GachaStore",
    "dump_gacha_list",
    "gacha_from_dict",
    "gacha_to_dict",
    "load_gacha_list",
]
