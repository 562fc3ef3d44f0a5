"""Shared token constants for tests.

All addresses are lowercase for consistency with normalize_address().

Usage:
    from tests.helpers import WETH, USDC
    # or
    from tests.helpers.constants import WETH, USDC
"""

# =============================================================================
# Mainnet tokens
# =============================================================================

WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"  # Wrapped Ether (18 decimals)
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"  # USD Coin (6 decimals)
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"  # Dai Stablecoin (18 decimals)
WSTETH = "0x7f39c581f595b53c5cb19bd0b3f8da6c935e2ca0"  # Wrapped stETH (18 decimals)
BAL = "0xba100000625a3754423978a60c9317c58a424e3d"  # Balancer (18 decimals)

# =============================================================================
# Abstract tokens for scenario tests (18 decimals)
# =============================================================================

TOKEN_A = "0x" + "a" * 40
TOKEN_B = "0x" + "b" * 40
TOKEN_C = "0x" + "c" * 40
TOKEN_D = "0x" + "d" * 40

# Not held by any test pool
UNKNOWN_TOKEN = "0x" + "e" * 40


# =============================================================================
# Token decimals lookup
# =============================================================================

TOKEN_DECIMALS = {
    WETH: 18,
    USDC: 6,
    DAI: 18,
    WSTETH: 18,
    BAL: 18,
    TOKEN_A: 18,
    TOKEN_B: 18,
    TOKEN_C: 18,
    TOKEN_D: 18,
}
