from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .gacha import Gacha  # noqa: F401
from .prize import Prize, Category  # noqa: F401
from .target import Target  # noqa: F401
from .operation import Operation  # noqa: F401
from .setting import AppSetting  # noqa: F401
from .utils import NONE_CATEGORY_ID, NONE_LABEL  # noqa: F401

__all__ = [
    "Base",
    "Gacha",
    "Prize",
    "Category",
    "Target",
    "Operation",
    "AppSetting",
    "NONE_CATEGORY_ID",
    "NONE_LABEL",
]
