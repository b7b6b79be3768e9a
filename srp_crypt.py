# -*- coding: utf-8 -*-
import random
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.constant_time import bytes_eq
from srp_errors import ChallengeError
from srp_globals import API_USERNAME, SEPARATOR, LENGTH_EPHEMERAL, LENGTH_PRIVATE

###### Crypto Globals ######

# A large safe prime (N = 2q+1, where q is prime)
# All arithmetic is done modulo N
# (the 1024-bit group of RFC 5054, appendix A)
N = '''EEAF0AB9 ADB38DD6 9C33F80A FA8FC5E8 60726187 75FF3C0B 9EA2314C
    9C256576 D674DF74 96EA81D3 383B4813 D692C6E0 E0D5D8E2 50B98BE4
    8E495C1D 6089DAD1 5DC7D7B4 6154D6B6 CE8EF4AD 69B15D49 82559B29
    7BCF1885 C529F566 660E57EC 68EDBC3C 05726CC0 2FD4CBF4 976EAA9A
    FD5138FE 8376435B 9FC61D2F C0EB06E3'''
N = int(''.join(N.split()), 16)

g = 2

################################


# converts an integer to its minimal big-endian representation
def int_to_bytes(n, length=None):
    if length is None:
        length = (n.bit_length() + 7) // 8
    return n.to_bytes(length, "big")


def bytes_to_int(data):
    return int.from_bytes(data, "big")


# a one-way hash function (SHA-256 over the concatenated values)
def H(*values):
    digest = hashes.Hash(hashes.SHA256())
    for value in values:
        if isinstance(value, int):
            value = int_to_bytes(value)
        digest.update(value)
    return digest.finalize()


# generates a random crypto number of n bits
def cryptrand(n=LENGTH_PRIVATE * 8):
    return random.SystemRandom().getrandbits(n)


def gen_x(salt, uname, password):
    """
    private key derived from the password: x = H(s, H(I ":" P))
    """
    return bytes_to_int(H(salt, H(uname, SEPARATOR, password)))


def gen_m(uname, salt, A, B, K):
    """
    client proof of session key: M = H(H(N) xor H(g), H(I), s, A, B, K)
    """
    HN = H(N)
    Hg = H(g)
    Ng_xor = bytes(n ^ m for n, m in zip(HN, Hg))
    return H(Ng_xor, H(uname), salt, A, B, K)


def _to_bytes(value):
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)

############### SRP ################

# SRP super class
class SRP(object):
    def __init__(self, uname):
        self.uname = _to_bytes(uname)
        self.is_auth = False
        self.A = None
        self.B = None
        self.session_key = None
        # Multiplier parameter
        self.k = bytes_to_int(H(N, g))
        self.salt = None

    # generates the scrambling parameter using A and B
    def gen_rand_scrambler(self):
        if self.A is None or self.B is None:
            return None
        return bytes_to_int(H(self.A, self.B))

    def authenticated(self):
        return self.is_auth


# SRP User class
class SRP_User(SRP):
    """
    client role of SRP-6a

    a: optional fixed private exponent, only meant for known-answer tests.
       when not given a new one is drawn on every start_authentication().
       a fixed one must give a 128 byte A, otherwise ValueError is raised
    """

    def __init__(self, password, uname=API_USERNAME, a=None):
        super(SRP_User, self).__init__(uname)
        self.password = _to_bytes(password)
        self._fixed_a = a
        self.a = None
        self.M = None
        self.H_AMK = None

    def _gen_ephemeral(self):
        # redraw until A fills the whole ephemeral length so the value sent
        # on the wire is the same one that gets hashed
        if self._fixed_a is not None:
            A = pow(g, self._fixed_a, N)
            if len(int_to_bytes(A)) != LENGTH_EPHEMERAL:
                raise ValueError("The fixed private exponent gives a short A")
            return self._fixed_a, A
        while True:
            a = cryptrand()
            A = pow(g, a, N)
            if len(int_to_bytes(A)) == LENGTH_EPHEMERAL:
                return a, A

    # creates an initial authentication to send to the device
    def start_authentication(self):
        self.is_auth = False
        self.session_key = None
        self.B = None
        self.salt = None
        self.M = None
        self.H_AMK = None
        self.a, A = self._gen_ephemeral()
        self.A = int_to_bytes(A, LENGTH_EPHEMERAL)
        return self.A

    def create_session_key(self):
        u = self.gen_rand_scrambler()
        if u == 0:
            raise ChallengeError("Invalid scrambling parameter.")
        x = gen_x(self.salt, self.uname, self.password)
        S_c = pow((bytes_to_int(self.B) - self.k * pow(g, x, N)) % N,
                  self.a + u * x, N)
        self.session_key = H(S_c)

    def process_challenge(self, salt, B):
        """
        processes the device challenge and returns the proof M1

        raises ChallengeError if the challenge must be rejected
        """
        if self.A is None:
            raise ChallengeError("Authentication not started.")
        B = bytes_to_int(B)
        # SRP-6a safety check
        if B % N == 0:
            raise ChallengeError("Invalid server ephemeral value.")
        self.B = int_to_bytes(B)
        self.salt = bytes(salt)
        self.create_session_key()
        self.M = gen_m(self.uname, self.salt, self.A, self.B, self.session_key)
        self.H_AMK = H(self.A, self.M, self.session_key)
        return self.M

    def verify_session(self, HAMK):
        if self.H_AMK is None or not isinstance(HAMK, (bytes, bytearray)):
            return
        if bytes_eq(self.H_AMK, bytes(HAMK)):
            self.is_auth = True

    def get_session_key(self):
        return self.session_key if self.is_auth else None


# SRP Verifier class (device role)
class SRP_Verifier(SRP):

    def __init__(self, salt, verifier, A, uname=API_USERNAME, b=None):
        super(SRP_Verifier, self).__init__(uname)
        self.v = bytes_to_int(verifier)         # Password verifier
        self.b = b if b is not None else cryptrand()
        self.A = int_to_bytes(bytes_to_int(A))
        self.salt = bytes(salt)
        self.M = None

    # SRP-6a safety check on the client ephemeral value
    def valid_client(self):
        return bytes_to_int(self.A) % N != 0

    # gets the inital challenge that the device will send
    def get_challenge(self):
        B = (self.k * self.v + pow(g, self.b, N)) % N
        self.B = int_to_bytes(B)
        return (self.salt, int_to_bytes(B, LENGTH_EPHEMERAL))

    # generates a shared session key
    def create_session_key(self):
        u = self.gen_rand_scrambler()
        S_s = pow(bytes_to_int(self.A) * pow(self.v, u, N), self.b, N)
        self.session_key = H(S_s)

    # verifies the client proof and returns the device proof, or None
    def verify_session(self, M):
        self.create_session_key()
        M_c = gen_m(self.uname, self.salt, self.A, self.B, self.session_key)
        if bytes_eq(M_c, bytes(M)):
            self.is_auth = True
            self.M = M_c
            return H(self.A, M_c, self.session_key)
        return None
