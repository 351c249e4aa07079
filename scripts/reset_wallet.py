import sys
import os
import argparse

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from moomines.config import settings
from moomines.core.storage import create_store


def reset_wallet(balance: float, clear_claim: bool):
    """Overwrite the persisted balance (and optionally the claim cooldown)."""
    store = create_store(settings.persistence, settings.paths)

    previous = store.get(settings.persistence.balance_key)
    store.set(settings.persistence.balance_key, f"{balance:.2f}")
    print(f"Balance: {previous or '(unset)'} -> {balance:.2f}")

    if clear_claim:
        store.set(settings.persistence.last_claim_key, "0")
        print("Claim cooldown cleared.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Reset the persisted Moo Mines wallet")
    parser.add_argument("--balance", type=float, default=settings.economy.starting_balance)
    parser.add_argument("--clear-claim", action="store_true", help="Allow an immediate stipend claim")
    args = parser.parse_args()
    reset_wallet(args.balance, args.clear_claim)
