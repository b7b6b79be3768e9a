# -*- coding: utf-8 -*-
import json
import os
from srp_crypt import N, g, bytes_to_int, gen_x, int_to_bytes
from srp_globals import API_USERNAME, LENGTH_SALT, LENGTH_VERIFIER

"""
credentials file

{
    "salt": "<4 bytes, hex>",
    "verifier": "<128 bytes, hex>"
}

the device stores the salt in its $S parameter and the verifier split in four
32 byte parts in $V0, $V1, $V2 and $V3
"""

VERIFIER_CHUNKS = 4


# creates a random salt
def gen_salt(size=LENGTH_SALT):
    return os.urandom(size)


# generates the verifier of a password, always LENGTH_VERIFIER bytes long
def gen_verifier(salt, password):
    if isinstance(password, str):
        password = password.encode("utf-8")
    x = gen_x(salt, API_USERNAME.encode("utf-8"), password)
    return int_to_bytes(pow(g, x, N), LENGTH_VERIFIER)


class DeviceCredentials():
    def __init__(self, salt, verifier):
        if len(salt) != LENGTH_SALT:
            raise ValueError("Salt must be {0} bytes long".format(LENGTH_SALT))
        if len(verifier) != LENGTH_VERIFIER:
            raise ValueError("Verifier must be {0} bytes long".format(LENGTH_VERIFIER))
        if bytes_to_int(verifier) == 0:
            raise ValueError("Verifier cannot be zero")
        self.salt = bytes(salt)
        self.verifier = bytes(verifier)

    # creates new credentials for a password
    @staticmethod
    def generate(password, salt=None):
        if salt is None:
            salt = gen_salt()
        return DeviceCredentials(salt, gen_verifier(salt, password))

    # splits the verifier the way the device parameters store it
    def verifier_chunks(self):
        size = LENGTH_VERIFIER // VERIFIER_CHUNKS
        return [self.verifier[i:i + size] for i in range(0, LENGTH_VERIFIER, size)]

    # generates a json formated version of this object
    def json_dump(self):
        l_json = {
            "salt": self.salt.hex(),
            "verifier": self.verifier.hex(),
        }
        return l_json

    @staticmethod
    def from_json(data):
        return DeviceCredentials(bytes.fromhex(data["salt"]),
                                 bytes.fromhex(data["verifier"]))

    def save(self, path):
        with open(path, "w") as data_file:
            data_file.write(json.dumps(self.json_dump()))

    # creates the credentials from a json file
    @staticmethod
    def load(path):
        with open(path, "r") as data_file:
            data = json.loads(data_file.read())
        return DeviceCredentials.from_json(data)
