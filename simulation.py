#!/usr/bin/env python3
"""Trade Escrow — End-to-End Simulation.

Runs four scenarios against an in-process TradeRegistry:

    Scenario 1: Happy Path
        - Buyer deposits 1000 at a 2% fee -> principal 980, collateral 49
        - Seller posts 49, both parties approve -> seller receives 1029

    Scenario 2: Buyer Refund
        - Seller never posts collateral, buyer takes the principal back

    Scenario 3: Agent Override
        - Agent releases the principal straight to the seller before collateral

    Scenario 4: Reentrant Seller
        - Seller's receiver hook tries to approve another trade mid-payout -> rejected

Usage:
    uv run python simulation.py
    uv run python simulation.py --scenario 1
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field

from trade_escrow.config import Settings, get_settings
from trade_escrow.domain.exceptions import EscrowError
from trade_escrow.logging_config import get_logger, setup_logging, setup_logging_from_settings
from trade_escrow.services.trade_registry import TradeRegistry

logger = get_logger("simulation")

AGENT = "0x" + "A" * 40
BUYER = "0x" + "B" * 40
SELLER = "0x" + "5" * 40


def new_registry(fee_percentage: int = 2) -> TradeRegistry:
    """Bring up a fresh registry with the simulation's agent."""
    return TradeRegistry(Settings(escrow_agent=AGENT, escrow_fee_percentage=fee_percentage))


# ---------------------------------------------------------------------------
# Bot Agents
# ---------------------------------------------------------------------------
@dataclass
class BuyerBot:
    """Simulated buyer that opens and approves trades."""

    registry: TradeRegistry
    wallet: str = BUYER

    def open_trade(self, seller: str, deposit: int) -> int:
        trade_id = self.registry.create_trade(self.wallet, seller, deposit)
        logger.info("🔵 BUYER: Trade created", trade_id=trade_id, deposit=deposit)
        return trade_id

    def approve(self, trade_id: int) -> None:
        details = self.registry.approve(self.wallet, trade_id)
        logger.info("🔵 BUYER: Approved", trade_id=trade_id, state=details.state)

    def refund(self, trade_id: int) -> None:
        details = self.registry.refund_buyer(self.wallet, trade_id)
        logger.info("🔵 BUYER: Refunded", trade_id=trade_id, amount=details.principal_amount)


@dataclass
class SellerBot:
    """Simulated seller that posts collateral and approves delivery."""

    registry: TradeRegistry
    wallet: str = SELLER
    received: list[int] = field(default_factory=list)

    def post_collateral(self, trade_id: int, pre_approve: bool = False) -> None:
        details = self.registry.get_trade_details(trade_id)
        self.registry.deposit_collateral(
            self.wallet, trade_id, details.collateral_amount, pre_approve
        )
        logger.info(
            "🟢 SELLER: Collateral posted",
            trade_id=trade_id,
            amount=details.collateral_amount,
        )

    def approve(self, trade_id: int) -> None:
        details = self.registry.approve(self.wallet, trade_id)
        logger.info("🟢 SELLER: Approved", trade_id=trade_id, state=details.state)


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------
def banner(text: str) -> None:
    """Print a prominent banner."""
    width = 70
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width + "\n")


def section(text: str) -> None:
    """Print a section header."""
    print(f"\n--- {text} ---\n")


def print_event_log(registry: TradeRegistry, trade_id: int | None = None) -> None:
    """Print the event log for a trade."""
    section("Event Log")
    for evt in registry.get_events(trade_id=trade_id):
        print(f"  #{evt.sequence:<3} {evt.event_type.value:<22} {evt.data}")


# ===========================================================================
# Scenarios
# ===========================================================================
def scenario_1_happy_path() -> TradeRegistry:
    banner("SCENARIO 1: Happy Path")
    registry = new_registry()
    buyer, seller = BuyerBot(registry), SellerBot(registry)

    trade_id = buyer.open_trade(seller.wallet, 1000)
    seller.post_collateral(trade_id)
    buyer.approve(trade_id)
    seller.approve(trade_id)

    section("Final Status")
    details = registry.get_trade_details(trade_id)
    print(f"  🛡️  Trade state: {details.state}")
    print(f"  🛡️  Seller paid: {registry.balance_of(seller.wallet)}")
    print(f"  🛡️  Fees collected: {registry.get_collected_fees()}")
    print_event_log(registry, trade_id)
    return registry


def scenario_2_buyer_refund() -> TradeRegistry:
    banner("SCENARIO 2: Buyer Refund")
    registry = new_registry()
    buyer = BuyerBot(registry)

    trade_id = buyer.open_trade(SELLER, 500)
    buyer.refund(trade_id)

    section("Final Status")
    print(f"  🛡️  Trade state: {registry.get_trade_details(trade_id).state}")
    print(f"  🛡️  Buyer refunded: {registry.balance_of(buyer.wallet)}")
    print_event_log(registry, trade_id)
    return registry


def scenario_3_agent_override() -> TradeRegistry:
    banner("SCENARIO 3: Agent Override")
    registry = new_registry()
    buyer = BuyerBot(registry)

    trade_id = buyer.open_trade(SELLER, 2000)
    registry.direct_release(AGENT, trade_id, SELLER)
    logger.info("🟣 AGENT: Released directly", trade_id=trade_id, recipient=SELLER)

    fees = registry.redeem_fees(AGENT)
    logger.info("🟣 AGENT: Fees redeemed", amount=fees)

    section("Final Status")
    print(f"  🛡️  Trade state: {registry.get_trade_details(trade_id).state}")
    print(f"  🛡️  Seller paid: {registry.balance_of(SELLER)}")
    print(f"  🛡️  Agent fees: {registry.balance_of(AGENT)}")
    print_event_log(registry)
    return registry


def scenario_4_reentrant_seller() -> TradeRegistry:
    banner("SCENARIO 4: Reentrant Seller")
    registry = new_registry()
    buyer, seller = BuyerBot(registry), SellerBot(registry)

    trade_id = buyer.open_trade(seller.wallet, 1000)
    other_trade = buyer.open_trade(seller.wallet, 300)
    seller.post_collateral(trade_id, pre_approve=True)

    def greedy_hook(amount: int) -> bool:
        seller.received.append(amount)
        try:
            registry.approve(seller.wallet, other_trade)
        except EscrowError as exc:
            logger.warning("🔴 SELLER: Re-entry blocked", error=exc.code)
        return True

    registry.register_receiver(seller.wallet, greedy_hook)
    buyer.approve(trade_id)

    section("Final Status")
    print(f"  🛡️  Trade state: {registry.get_trade_details(trade_id).state}")
    print(f"  🛡️  Seller paid: {registry.balance_of(seller.wallet)}")
    print_event_log(registry, trade_id)
    return registry


SCENARIOS = {
    1: scenario_1_happy_path,
    2: scenario_2_buyer_refund,
    3: scenario_3_agent_override,
    4: scenario_4_reentrant_seller,
}


# ===========================================================================
# Main
# ===========================================================================
def run_all() -> None:
    """Run all scenarios sequentially."""
    print("\n" + "🚀" * 35)
    print("  TRADE ESCROW — SIMULATION")
    print("🚀" * 35 + "\n")

    for scenario in SCENARIOS.values():
        scenario()

    print("\n" + "=" * 70)
    print("  ✅ ALL SCENARIOS COMPLETED SUCCESSFULLY")
    print("=" * 70 + "\n")


def run_scenario(num: int) -> None:
    """Run a specific scenario."""
    if num not in SCENARIOS:
        print(f"Unknown scenario {num}. Available: {', '.join(map(str, SCENARIOS))}")
        return
    SCENARIOS[num]()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Trade Escrow Simulation")
    parser.add_argument(
        "--scenario",
        type=int,
        default=0,
        help="Run a specific scenario (1-4). Default: run all.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level for the console output. Default: APP_LOG_LEVEL from settings.",
    )
    args = parser.parse_args()

    if args.log_level:
        setup_logging(log_level=args.log_level, json_logs=False)
    else:
        setup_logging_from_settings(get_settings())
    if args.scenario == 0:
        run_all()
    else:
        run_scenario(args.scenario)
