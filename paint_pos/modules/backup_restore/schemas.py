from typing import Any, Dict, Literal

from pydantic import BaseModel


class ImportIn(BaseModel):
    data: Dict[str, Any]
    type: Literal["all", "products", "inventory"] = "all"
