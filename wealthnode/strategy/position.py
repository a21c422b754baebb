"""Position sizing and risk management."""


class PositionSizer:
    """Calculates position size as a fixed fraction of capital."""

    def __init__(
        self,
        risk_per_trade: float = 0.02,
        min_quantity: float = 0.001,
        pnl_range: float = 0.1,
    ):
        """
        Initialize position sizer.

        Args:
            risk_per_trade: Fraction of capital committed per trade (0.02 = 2%)
            min_quantity: Smallest tradable quantity in base units
            pnl_range: Width of the synthetic return band (0.1 = +/-5%)
        """
        self.risk_per_trade = risk_per_trade
        self.min_quantity = min_quantity
        self.pnl_range = pnl_range

    def calculate_notional(self, capital: float) -> float:
        """Quote-currency amount to commit for a trade."""
        return capital * self.risk_per_trade

    def calculate_size(self, capital: float, price: float) -> float:
        """
        Calculate position size in base units.

        Args:
            capital: Current capital
            price: Entry price

        Returns:
            Quantity to trade, or 0.0 when the trade would be smaller than
            min_quantity or the inputs are not tradable
        """
        if capital <= 0 or price <= 0:
            return 0.0

        quantity = self.calculate_notional(capital) / price

        if quantity < self.min_quantity:
            return 0.0

        return quantity

    def calculate_synthetic_pnl(
        self, entry_price: float, quantity: float, draw: float
    ) -> float:
        """
        Calculate a synthetic P&L from a uniform draw in [0, 1).

        The result is bounded by +/- (pnl_range / 2) of the position notional.
        """
        return (draw - 0.5) * quantity * entry_price * self.pnl_range
