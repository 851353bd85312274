"""
Plot Data — Модели данных для визуализации

Immutable Pydantic модели, которые движок отдаёт внешнему рендереру:
- PlotDomain: окно отображения (x_min, x_max, y_min, y_max)
- PlotSample: сэмплы кривой f(x) с пропусками (y=None) в точках вне области определения
- TangentSeries / AnchorPoint: касательная и точка касания на каждой итерации
- PlotData: полный набор серий для одного расчёта

Движок не держит ссылок на объекты рендеринга: PlotData — только данные,
владелец — вызывающая сторона.
"""

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# DOMAIN
# =============================================================================


class PlotDomain(BaseModel):
    """
    Окно отображения графика.

    Инварианты: x_min < x_max, y_min < y_max, все границы конечны.
    """

    x_min: float = Field(..., allow_inf_nan=False, description="Левая граница по x")
    x_max: float = Field(..., allow_inf_nan=False, description="Правая граница по x")
    y_min: float = Field(..., allow_inf_nan=False, description="Нижняя граница по y")
    y_max: float = Field(..., allow_inf_nan=False, description="Верхняя граница по y")

    model_config = {"frozen": True}

    @field_validator("x_max")
    @classmethod
    def validate_x_max_greater_than_min(cls, v: float, info) -> float:
        """Проверка, что x_max > x_min"""
        if "x_min" in info.data and v <= info.data["x_min"]:
            raise ValueError(f"x_max {v} must be > x_min {info.data['x_min']}")
        return v

    @field_validator("y_max")
    @classmethod
    def validate_y_max_greater_than_min(cls, v: float, info) -> float:
        """Проверка, что y_max > y_min"""
        if "y_min" in info.data and v <= info.data["y_min"]:
            raise ValueError(f"y_max {v} must be > y_min {info.data['y_min']}")
        return v


# =============================================================================
# SERIES
# =============================================================================


class PlotPoint(BaseModel):
    """Точка серии; y=None там, где функция не определена"""

    x: float = Field(..., allow_inf_nan=False)
    y: float | None = Field(None, allow_inf_nan=False)

    model_config = {"frozen": True}


class PlotSample(BaseModel):
    """
    Сэмплы кривой f(x) на равномерной сетке.

    Порядок точек — по возрастанию x. Пропуск (y=None) не прерывает сэмплирование.
    """

    points: tuple[PlotPoint, ...] = Field(..., min_length=2)

    model_config = {"frozen": True}

    def xs(self) -> list[float]:
        return [p.x for p in self.points]

    def ys(self) -> list[float | None]:
        return [p.y for p in self.points]

    def gap_count(self) -> int:
        """Количество точек, где функция не определена"""
        return sum(1 for y in self.ys() if y is None)


class TangentSeries(BaseModel):
    """Касательная y = slope * x + intercept, построенная на итерации iteration"""

    iteration: int = Field(..., ge=0)
    slope: float = Field(..., allow_inf_nan=False)
    intercept: float = Field(..., allow_inf_nan=False)
    points: tuple[PlotPoint, ...] = Field(...)

    model_config = {"frozen": True}


class AnchorPoint(BaseModel):
    """Точка касания (x_n, f(x_n)) для маркера итерации"""

    iteration: int = Field(..., ge=0)
    x: float = Field(..., allow_inf_nan=False)
    y: float = Field(..., allow_inf_nan=False)

    model_config = {"frozen": True}


class PlotData(BaseModel):
    """
    Полный набор данных для графика одного расчёта.

    - curve: сэмплы f(x)
    - zero_line: опорная линия y = 0 на тех же абсциссах
    - tangents: по одной касательной на итерацию
    - anchors: по одной точке касания на итерацию
    """

    domain: PlotDomain
    curve: PlotSample
    zero_line: tuple[PlotPoint, ...]
    tangents: tuple[TangentSeries, ...] = ()
    anchors: tuple[AnchorPoint, ...] = ()

    model_config = {"frozen": True}

    @field_validator("anchors")
    @classmethod
    def validate_anchor_per_tangent(
        cls, v: tuple[AnchorPoint, ...], info
    ) -> tuple[AnchorPoint, ...]:
        """Проверка: одна точка касания на каждую касательную"""
        if "tangents" in info.data and len(v) != len(info.data["tangents"]):
            raise ValueError(
                f"anchors count {len(v)} must equal tangents count {len(info.data['tangents'])}"
            )
        return v
