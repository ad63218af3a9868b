from .models import Discount
from .strategies import (
    BogoDiscountStrategy,
    DiscountStrategy,
    FixedAmountDiscountStrategy,
    PercentageDiscountStrategy,
)


class DiscountStrategyFactory:
    """
    Factory for creating a discount strategy based on the discount type.
    """

    _strategies = {
        Discount.DiscountType.PERCENTAGE: PercentageDiscountStrategy,
        Discount.DiscountType.FIXED: FixedAmountDiscountStrategy,
        Discount.DiscountType.BOGO: BogoDiscountStrategy,
    }

    @staticmethod
    def get_strategy(discount_type: str) -> DiscountStrategy:
        """
        Selects and returns the appropriate strategy instance.
        """
        strategy_class = DiscountStrategyFactory._strategies.get(discount_type)

        if strategy_class:
            return strategy_class()

        raise NotImplementedError(
            f"No strategy implemented for discount type '{discount_type}'"
        )
