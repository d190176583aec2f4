"""
Investment — модель инвестиции менеджера

Immutable Pydantic модель: ставка reputation на цену одного актива против
reference-актива в пределах одного цикла.

Жизненный цикл:
- создаётся в MAKE_DECISIONS (stake удержан, цены не заданы)
- with_purchase(): фиксирует количество и цену покупки (ровно один раз)
- with_sale(): фиксирует цену продажи и закрывает (ровно один раз)
"""

from pydantic import BaseModel, Field, model_validator

from src.core.errors import InvalidInvestment


class Investment(BaseModel):
    """
    Модель инвестиции.

    Immutable модель (frozen=True). Все изменения создают новый экземпляр.
    """

    # Идентификация
    asset: str = Field(..., min_length=1, description="Целевой актив")
    cycle_number: int = Field(..., ge=0, description="Цикл открытия")

    # Stake
    stake: int = Field(..., gt=0, description="Удержанный stake (reputation)")

    # Покупка / продажа
    asset_quantity: int = Field(0, ge=0, description="Наблюдаемое купленное количество")
    buy_price: int = Field(0, ge=0, description="Цена покупки (reference за единицу, PRECISION)")
    sell_price: int = Field(0, ge=0, description="Цена продажи (reference за единицу, PRECISION)")
    is_sold: bool = Field(False, description="Инвестиция закрыта")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_lifecycle(self) -> "Investment":
        """Продажа возможна только после покупки; цена продажи только у закрытой."""
        if self.is_sold and self.buy_price == 0:
            raise ValueError("a sold investment must have a buy price")
        if self.sell_price > 0 and not self.is_sold:
            raise ValueError("sell_price is only set on a sold investment")
        if self.buy_price > 0 and self.asset_quantity == 0:
            raise ValueError("a purchased investment must hold a nonzero quantity")
        return self

    def is_open(self) -> bool:
        """Куплена и ещё не продана."""
        return self.buy_price > 0 and not self.is_sold

    def with_purchase(self, asset_quantity: int, buy_price: int) -> "Investment":
        """
        Фиксация покупки.

        Raises:
            InvalidInvestment: Если цена покупки уже задана или нулевая
        """
        if self.buy_price != 0:
            raise InvalidInvestment("buy price is already set")
        if buy_price <= 0:
            raise InvalidInvestment("buy price must be positive")
        return self.model_validate(
            {**self.model_dump(), "asset_quantity": asset_quantity, "buy_price": buy_price}
        )

    def with_sale(self, sell_price: int) -> "Investment":
        """
        Фиксация продажи и закрытие.

        Raises:
            InvalidInvestment: Если инвестиция не куплена или уже закрыта
        """
        if self.buy_price == 0:
            raise InvalidInvestment("investment was never purchased")
        if self.is_sold:
            raise InvalidInvestment("investment is already sold")
        if sell_price <= 0:
            raise InvalidInvestment("sell price must be positive")
        return self.model_validate(
            {**self.model_dump(), "sell_price": sell_price, "is_sold": True}
        )
