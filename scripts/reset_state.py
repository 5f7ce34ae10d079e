"""Reset order and catalog state in Redis (useful for testing)."""

import asyncio

from pickup.state.manager import StateManager

KEY_PATTERNS = ["order:*", "orders:*", "product:*"]


async def reset_all_state() -> None:
    """Delete all pickup order keys from Redis."""
    print("\n⚠️  WARNING: This will delete ALL orders and catalog products!")
    response = input("Are you sure? (yes/no): ")

    if response.lower() != "yes":
        print("Cancelled.")
        return

    print("\nResetting state...")

    state_manager = StateManager()
    await state_manager.connect()

    deleted = 0
    for pattern in KEY_PATTERNS:
        keys = await state_manager.scan_keys(pattern)
        if keys:
            await state_manager.delete(*keys)
            deleted += len(keys)

    await state_manager.disconnect()

    print(f"✓ Deleted {deleted} keys from Redis\n")


if __name__ == "__main__":
    asyncio.run(reset_all_state())
