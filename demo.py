#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Token Ledger Step by Step

A walkthrough of the ERC20 accounting model. Each step builds on the
previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-2: Foundation  - Deployment, metadata, the initial supply
  3-4: Transfers   - Direct transfers, rejections that change nothing
  5-6: Delegation  - Allowances, delegated transfers, the zero address
  7:   Audit       - Transaction log, replay, conservation proof

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from token_ledger import (
    TokenLedger, EventRecorder, LedgerError,
    ZERO_ADDRESS, tokens,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    deployer: str = "0x627306090abaB3A6e1400e9345bC60c78a8BEf57"
    receiver: str = "0xf17f52151EbEF6C7334FAD080c5704D77216b732"
    exchange: str = "0xC5fdf4076b8F3A5357c5E395ab970B5B54098Fef"

    transfer_amount: int = 100
    allowance_amount: int = 100


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def show_balances(ledger: TokenLedger):
    for label, addr in (("deployer", CONFIG.deployer),
                        ("receiver", CONFIG.receiver),
                        ("exchange", CONFIG.exchange)):
        print(f"  {label:<9} {ledger.balance_of(addr) / 10**ledger.decimals:>14,.2f} {ledger.symbol}")


# ============================================================================
# STEPS
# ============================================================================

def step_01_deploy():
    step_header(1, "Deployment",
        "The entire fixed supply is credited to the creator. Nothing else exists yet.")

    print(f">>> ledger = TokenLedger({CONFIG.deployer!r})")
    ledger = TokenLedger(CONFIG.deployer, verbose=True)

    section_header("Metadata")
    print(f"Name:         {ledger.name}")
    print(f"Symbol:       {ledger.symbol}")
    print(f"Decimals:     {ledger.decimals}")
    print(f"Total supply: {ledger.total_supply} (= tokens(1_000_000))")
    return ledger


def step_02_observe(ledger: TokenLedger) -> EventRecorder:
    step_header(2, "Observers",
        "Every successful operation emits exactly one Transfer or Approval.")

    recorder = EventRecorder()
    print(">>> ledger.events.subscribe(recorder)")
    ledger.events.subscribe(recorder)
    return recorder


def step_03_transfer(ledger: TokenLedger, recorder: EventRecorder):
    step_header(3, "Direct Transfer",
        "transfer() moves value and conserves the supply.")

    wait_for_enter()
    amount = tokens(CONFIG.transfer_amount)
    ledger.transfer(CONFIG.deployer, CONFIG.receiver, amount)

    section_header("Balances")
    show_balances(ledger)
    section_header("Event")
    print(f"  {recorder.events[-1].event}: {recorder.events[-1].args}")


def step_04_rejections(ledger: TokenLedger):
    step_header(4, "Rejections",
        "Failed operations raise and leave every balance untouched.")

    wait_for_enter()
    for description, call in (
        ("more than the supply", lambda: ledger.transfer(CONFIG.deployer, CONFIG.receiver, tokens(100_000_000))),
        ("to the zero address", lambda: ledger.transfer(CONFIG.deployer, ZERO_ADDRESS, tokens(1))),
    ):
        try:
            call()
        except LedgerError as e:
            print(f"  transfer {description}: {type(e).__name__}")
    show_balances(ledger)


def step_05_delegation(ledger: TokenLedger):
    step_header(5, "Delegated Transfer",
        "approve() sets an allowance; transfer_from() spends it.")

    wait_for_enter()
    amount = tokens(CONFIG.allowance_amount)
    ledger.approve(CONFIG.deployer, CONFIG.exchange, amount)
    print(f"  allowance after approve:       {ledger.allowance(CONFIG.deployer, CONFIG.exchange)}")
    ledger.transfer_from(CONFIG.exchange, CONFIG.deployer, CONFIG.receiver, amount)
    print(f"  allowance after transfer_from: {ledger.allowance(CONFIG.deployer, CONFIG.exchange)}")

    try:
        ledger.transfer_from(CONFIG.exchange, CONFIG.deployer, CONFIG.receiver, tokens(1))
    except LedgerError as e:
        print(f"  spending again: {type(e).__name__}")
    show_balances(ledger)


def step_06_zero_spender(ledger: TokenLedger):
    step_header(6, "The Zero Address as Spender",
        "approve() accepts it; approve_checked() rejects it.")

    wait_for_enter()
    ledger.approve(CONFIG.deployer, ZERO_ADDRESS, tokens(1))
    try:
        ledger.approve_checked(CONFIG.deployer, ZERO_ADDRESS, tokens(1))
    except LedgerError as e:
        print(f"  approve_checked: {type(e).__name__}")


def step_07_audit(ledger: TokenLedger):
    step_header(7, "Audit Trail",
        "The transaction log rebuilds identical state; the supply is conserved.")

    wait_for_enter()
    for op in ledger.transaction_log:
        print(f"  {op!r}")

    ledger.verbose = False
    replayed = ledger.replay()
    section_header("Proof")
    print(f"  replay matches:      {replayed.holders() == ledger.holders()}")
    print(f"  conservation valid:  {ledger.verify_conservation()['valid']}")


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       TOKEN LEDGER - INTERACTIVE TUTORIAL")
    print("=" * 70)

    ledger = step_01_deploy()
    recorder = step_02_observe(ledger)
    step_03_transfer(ledger, recorder)
    step_04_rejections(ledger)
    step_05_delegation(ledger)
    step_06_zero_spender(ledger)
    step_07_audit(ledger)

    print(f"\n{len(recorder.events)} events observed. Done.")


if __name__ == "__main__":
    main()
