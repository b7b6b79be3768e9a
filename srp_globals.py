# -*- coding: utf-8 -*-
# globals shared by the bluetooth unlock client and the device simulator

# the identity (I) is fixed for the bluetooth unlock service
API_USERNAME = "apiservice"
SEPARATOR = b":"

# seconds to wait for each unlock response
TIMEOUT_AUTH = 4.0

# lengths in bytes
LENGTH_SALT = 4
LENGTH_EPHEMERAL = 128
LENGTH_VERIFIER = 128
LENGTH_SESSION_PROOF = 32
LENGTH_NONCE = 12
LENGTH_PRIVATE = 32

# api frame types
BLE_UNLOCK = 0x2C
BLE_UNLOCK_RESPONSE = 0xAC

ERROR_AUTH = "Error performing authentication"
ERROR_AUTH_EXTENDED = ERROR_AUTH + " > {0}"
