"""Product and competitor form captured in the input step."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class FormData(BaseModel):
    """Structured input for the strategy analysis prompt.

    All fields are free text and may be left empty. Keys are accepted in
    snake_case or in the camelCase used by the web form (``productName``).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    # Core product info
    product_name: str = Field(default="", description="产品名称 (含年款)")
    product_type: str = Field(default="", description="产品类型/定位")
    price_range: str = Field(default="", description="官方指导价范围")
    actual_price: str = Field(default="", description="当前终端有效价格")
    launch_date: str = Field(default="", description="市场投放日期")
    data_cutoff: str = Field(default="", description="数据截止日期")
    sales_target: str = Field(default="", description="期望月销量目标")
    core_selling_points: str = Field(default="", description="核心卖点 (KSP)")
    cockpit_system: str = Field(default="", description="智能座舱系统")
    smart_driving_system: str = Field(default="", description="智能驾驶系统")
    energy_type: str = Field(default="", description="能源形式约束")
    market_segment: str = Field(default="", description="市场细分")

    # Competitor matrix
    comp1: str = Field(default="", description="核心对标竞品 1")
    comp2: str = Field(default="", description="核心对标竞品 2")
    price_comp1: str = Field(default="", description="价格重叠竞品 1")
    price_comp2: str = Field(default="", description="价格重叠竞品 2")
    price_comp3: str = Field(default="", description="价格重叠竞品 3")
    price_comp4: str = Field(default="", description="价格重叠竞品 4")
    high_price1: str = Field(default="", description="高价位标杆 1")
    high_price2: str = Field(default="", description="高价位标杆 2")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_to_text(cls, value: Any) -> str:
        # YAML turns "2025" into an int and blank values into None
        if value is None:
            return ""
        return str(value).strip()

    @classmethod
    def from_file(cls, path: Path) -> "FormData":
        """Load a form from a YAML or JSON file.

        Raises:
            ValueError: If the file does not contain a mapping
        """
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"Form file {path} must contain a mapping of field names to values")
        return cls.model_validate(data)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.model_dump(), allow_unicode=True, sort_keys=False)
