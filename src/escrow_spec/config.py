"""Escrow program configuration constants.

Keep this file aligned with the on-chain program constants and the host
ledger parameters the program is deployed against.
"""

# Integer bounds
U64_MAX = (1 << 64) - 1
I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1

# Sizes
PUBKEY_LEN = 32
ESCROW_LEN = 1 + 32 + 32 + 32 + 8 + 8 + 8  # 121 bytes
TOKEN_ACCOUNT_LEN = 165
INIT_ESCROW_PAYLOAD_LEN = 8 + 8 + 8
EXCHANGE_PAYLOAD_LEN = 8

# Program-derived addresses
MAX_SEEDS = 16
MAX_SEED_LEN = 32
PDA_MARKER = b"ProgramDerivedAddress"
ESCROW_AUTHORITY_SEED = b"escrow"

# Rent (host ledger minimum-balance rule)
ACCOUNT_STORAGE_OVERHEAD = 128
DEFAULT_LAMPORTS_PER_BYTE_YEAR = 3480
DEFAULT_EXEMPTION_THRESHOLD_YEARS = 2

# Well-known addresses
SYSTEM_PROGRAM_ID = bytes(32)
TOKEN_PROGRAM_ID = bytes.fromhex(
    "06ddf6e1d765a193d9cbe146ceeb79ac1cb485ed5f5b37913a8cf5857eff00a9"
)
RENT_SYSVAR_ID = bytes.fromhex(
    "06a7d517192c5c51218cc94c3d4af17f58daee089ba1fd44e3dbd98a00000000"
)
ESCROW_PROGRAM_ID = bytes.fromhex(
    "0b7e5c2fa3d14e61a9c0f58e2d7b64c3195ae0f7d2c84b16e9a35f0c7d21b4e8"
)

