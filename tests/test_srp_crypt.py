#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Unit tests for the SRP-6a engine."""

import unittest
from unittest.mock import patch

import vectors
import srp_crypt
from device_credentials import DeviceCredentials, gen_verifier
from srp_crypt import N, SRP_User, SRP_Verifier, bytes_to_int, int_to_bytes
from srp_errors import ChallengeError


class SRPUserKnownAnswerTest(unittest.TestCase):
    """Known answer tests with a fixed private exponent."""

    def setUp(self) -> None:
        self.user = SRP_User(vectors.PASSWORD, a=vectors.a)

    def test_group_parameters(self) -> None:
        """N is the RFC 5054 1024-bit prime and k = H(N, g)."""
        self.assertEqual(N.bit_length(), 1024)
        self.assertEqual(srp_crypt.g, 2)
        self.assertEqual(self.user.k, vectors.k)

    def test_client_ephemeral_matches_rfc5054(self) -> None:
        """A = g^a mod N is the A of the RFC 5054 test vector."""
        self.assertEqual(self.user.start_authentication(), vectors.A)

    def test_private_key_and_verifier(self) -> None:
        """x = H(s, H(I ":" P)) and v = g^x mod N."""
        x = srp_crypt.gen_x(vectors.SALT, b"apiservice", b"test1234")
        self.assertEqual(x, vectors.x)
        self.assertEqual(gen_verifier(vectors.SALT, vectors.PASSWORD), vectors.v)

    def test_scrambler(self) -> None:
        """u = H(A, B)."""
        self.user.start_authentication()
        self.user.B = vectors.B
        self.assertEqual(self.user.gen_rand_scrambler(), vectors.u)

    def test_client_proof_and_session_key(self) -> None:
        """M1 and K are the expected literals."""
        self.user.start_authentication()
        M1 = self.user.process_challenge(vectors.SALT, vectors.B)

        self.assertEqual(M1, vectors.M1)
        self.assertEqual(self.user.session_key, vectors.K)

    def test_verify_session_success(self) -> None:
        """The expected M2 authenticates the user and releases K."""
        self.user.start_authentication()
        self.user.process_challenge(vectors.SALT, vectors.B)
        self.assertIsNone(self.user.get_session_key())

        self.user.verify_session(vectors.M2)

        self.assertTrue(self.user.authenticated())
        self.assertEqual(self.user.get_session_key(), vectors.K)

    def test_verify_session_mismatch(self) -> None:
        """A different M2 leaves the user unauthenticated without raising."""
        self.user.start_authentication()
        self.user.process_challenge(vectors.SALT, vectors.B)

        bad = bytes([vectors.M2[0] ^ 0x01]) + vectors.M2[1:]
        self.user.verify_session(bad)
        self.user.verify_session(vectors.M2[:16])
        self.user.verify_session(None)

        self.assertFalse(self.user.authenticated())
        self.assertIsNone(self.user.get_session_key())

    def test_verify_session_before_challenge(self) -> None:
        """verify_session() is a no-op before the challenge is processed."""
        self.user.start_authentication()
        self.user.verify_session(vectors.M2)
        self.assertFalse(self.user.authenticated())


class SRPUserTest(unittest.TestCase):
    """Behaviour with random private exponents."""

    def test_ephemeral_is_fresh_and_full_length(self) -> None:
        """Every start_authentication() draws a new 128 byte A."""
        user = SRP_User("secret")
        values = {user.start_authentication() for _ in range(8)}
        values.add(SRP_User("secret").start_authentication())

        self.assertEqual(len(values), 9)
        for A in values:
            self.assertEqual(len(A), 128)

    def test_fixed_exponent_with_short_ephemeral(self) -> None:
        """A fixed a whose A is shorter than 128 bytes is refused."""
        user = SRP_User("secret", a=1)
        with self.assertRaises(ValueError):
            user.start_authentication()
        self.assertIsNone(user.A)

    def test_restart_clears_previous_session(self) -> None:
        """A new start_authentication() forgets the previous result."""
        user = SRP_User(vectors.PASSWORD, a=vectors.a)
        user.start_authentication()
        user.process_challenge(vectors.SALT, vectors.B)
        user.verify_session(vectors.M2)
        self.assertTrue(user.authenticated())

        user.start_authentication()

        self.assertFalse(user.authenticated())
        self.assertIsNone(user.get_session_key())
        self.assertIsNone(user.M)

    def test_rejects_zero_server_ephemeral(self) -> None:
        """B = 0 and B = N are rejected."""
        user = SRP_User("secret")
        user.start_authentication()
        with self.assertRaises(ChallengeError):
            user.process_challenge(vectors.SALT, bytes(128))
        with self.assertRaises(ChallengeError):
            user.process_challenge(vectors.SALT, int_to_bytes(N, 128))

    def test_rejects_challenge_before_start(self) -> None:
        """process_challenge() needs A."""
        with self.assertRaises(ChallengeError):
            SRP_User("secret").process_challenge(vectors.SALT, vectors.B)

    def test_rejects_zero_scrambler(self) -> None:
        """u = 0 is rejected."""
        user = SRP_User("secret")
        user.start_authentication()
        with patch.object(SRP_User, "gen_rand_scrambler", return_value=0):
            with self.assertRaises(ChallengeError):
                user.process_challenge(vectors.SALT, vectors.B)


class SRPVerifierTest(unittest.TestCase):
    """Client and device roles agree on the session key."""

    def setUp(self) -> None:
        self.credentials = DeviceCredentials.generate("secret")

    def _handshake(self, password):
        user = SRP_User(password)
        A = user.start_authentication()
        verifier = SRP_Verifier(self.credentials.salt, self.credentials.verifier, A)
        salt, B = verifier.get_challenge()
        self.assertEqual(len(B), 128)
        M1 = user.process_challenge(salt, B)
        HAMK = verifier.verify_session(M1)
        if HAMK is not None:
            user.verify_session(HAMK)
        return user, verifier, HAMK

    def test_full_handshake_success(self) -> None:
        """Right password authenticates both sides with the same key."""
        user, verifier, HAMK = self._handshake("secret")

        self.assertIsNotNone(HAMK)
        self.assertTrue(verifier.authenticated())
        self.assertTrue(user.authenticated())
        self.assertEqual(user.get_session_key(), verifier.session_key)
        self.assertEqual(len(user.get_session_key()), 32)

    def test_full_handshake_failure(self) -> None:
        """Wrong password is rejected by the device."""
        user, verifier, HAMK = self._handshake("wrong")

        self.assertIsNone(HAMK)
        self.assertFalse(verifier.authenticated())
        self.assertFalse(user.authenticated())

    def test_device_rejects_zero_client_ephemeral(self) -> None:
        """A mod N == 0 is not a valid client."""
        verifier = SRP_Verifier(self.credentials.salt, self.credentials.verifier,
                                int_to_bytes(N, 128))
        self.assertFalse(verifier.valid_client())

    def test_int_conversions(self) -> None:
        """Integers are minimal big-endian unless a length is given."""
        self.assertEqual(int_to_bytes(2), b"\x02")
        self.assertEqual(int_to_bytes(2, 4), b"\x00\x00\x00\x02")
        self.assertEqual(bytes_to_int(b"\x00\x01\x00"), 256)


if __name__ == "__main__":
    unittest.main()
