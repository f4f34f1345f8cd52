"""
Configuration for the ballotbox election engine.

Plain module constants used by the HTTP service, its CLI client and the gas
metering of engine operations.
"""

# Server configuration
SERVER_HOST = "127.0.0.1"
SERVER_PORT = 5000
BASE_URL = f"http://{SERVER_HOST}:{SERVER_PORT}"
REQUEST_TIMEOUT = 5

# Gas budget given to a call that does not name one; None means unmetered
DEFAULT_GAS_LIMIT = 3000000

# Gas costs of engine operations
GAS_BASE = 21000
GAS_FLAG_WRITE = 5000
GAS_CREATE_ELECTION = 200000
GAS_ADD_OPTION = 40000
GAS_STORE_SLOT = 20000

# Paillier modulus size used by the demo and the CLI key generator
PAILLIER_KEY_BITS = 512

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL = "INFO"
