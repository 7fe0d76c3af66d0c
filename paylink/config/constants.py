"""
Application constants.

Centralized constants for the application.
"""

# ========================================================================
# NETWORK CONSTANTS
# ========================================================================

NETWORK_MAINNET = "mainnet"
NETWORK_SEPOLIA = "sepolia"

# Arbitrum One / Arbitrum Sepolia
CHAIN_IDS = {
    NETWORK_MAINNET: 42161,
    NETWORK_SEPOLIA: 421614,
}

# Circle's official USDC (proxy) contracts
USDC_ADDRESSES = {
    NETWORK_MAINNET: "0xaf88d065e77c8cc2239327c5edb3a432268e5831",
    NETWORK_SEPOLIA: "0x75faf114eafb1bdbe2f0316df893fd58ce46aa4d",
}

EXPLORER_TX_URLS = {
    NETWORK_MAINNET: "https://arbiscan.io/tx",
    NETWORK_SEPOLIA: "https://sepolia.arbiscan.io/tx",
}

NETWORK_ALIASES = {
    "mainnet": NETWORK_MAINNET,
    "prod": NETWORK_MAINNET,
    "production": NETWORK_MAINNET,
    "sepolia": NETWORK_SEPOLIA,
    "testnet": NETWORK_SEPOLIA,
}

# ========================================================================
# TOKEN CONSTANTS
# ========================================================================

TOKEN_SYMBOL = "USDC"
TOKEN_DECIMALS = 6

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# ========================================================================
# BLOCKCHAIN CONSTANTS
# ========================================================================

# Blockchain operation timeouts (in seconds)
BLOCKCHAIN_TIMEOUT = 30.0  # Standard blockchain operations (get_transaction_receipt, etc.)
BLOCKCHAIN_RPC_TIMEOUT = 30  # RPC provider HTTP timeout

# Receipt polling: a receipt may not be indexed right after broadcast
RECEIPT_POLL_ATTEMPTS = 6
RECEIPT_POLL_DELAY_SECONDS = 0.9

# Gas settings for token transfers
DEFAULT_TOKEN_GAS_LIMIT = 100000
GAS_LIMIT_MULTIPLIER = 1.2  # Safety buffer for gas estimation

# ========================================================================
# DIRECTORY SERVICE CONSTANTS
# ========================================================================

DIRECTORY_TIMEOUT = 10.0  # Directory service HTTP timeout (seconds)
INTERNAL_KEY_HEADER = "X-PayLink-Internal-Key"
SESSION_ADDRESS_HEADER = "X-PayLink-Session-Address"  # Set by the authenticating gateway

# Quiet period before a recipient lookup is issued
LOOKUP_DEBOUNCE_SECONDS = 0.35

# ========================================================================
# NOTIFICATION CONSTANTS
# ========================================================================

NOTE_MAX_LENGTH = 180
NOTIFICATION_TYPE_PAYMENT_RECEIVED = "payment_received"

# ========================================================================
# EXCHANGE RATE CONSTANTS
# ========================================================================

EXCHANGE_RATE_TTL_SECONDS = 300  # 5 minutes
EXCHANGE_RATE_FETCH_RETRIES = 1

# ========================================================================
# FORMAT PATTERNS
# ========================================================================

EVM_ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
TX_HASH_PATTERN = r"^0x[a-fA-F0-9]{64}$"
HANDLE_PATTERN = r"^@?[a-z0-9_]{3,20}$"
INTERNAL_ID_PATTERN = r"^dp\d{6,}$"
AMOUNT_PATTERN = r"^-?(\d+(\.\d*)?|\.\d+)$"  # Plain decimal; no exponent or digit separators
EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
PHONE_MIN_DIGITS = 7
