#!/usr/bin/env python3
"""
Command-line entry point: generate a JWT signing key pair into an env file.

    envkeys [BITS] [-o PATH] [--profile {pkcs1,pkcs8}] [--timeout SECONDS] [--check]
"""
import argparse
import logging
import sys

from .config import Settings
from .exceptions import KeyProvisioningError
from .loader import load_from_env
from .provisioner import KeyProvisioner
from .validation import VALID_PROFILES
from .verification import check_keys

logger = logging.getLogger(__name__)


def build_parser(settings):
    parser = argparse.ArgumentParser(
        prog="envkeys",
        description="Generate an RSA key pair and write it base64 DER encoded into an env file",
    )
    parser.add_argument("bits", nargs="?", default="",
                        help=f"RSA modulus size in bits (default {settings.KEY_SIZE})")
    parser.add_argument("-o", "--output", default=settings.OUTPUT,
                        help=f"Destination env file (default {settings.OUTPUT})")
    parser.add_argument("--profile", choices=VALID_PROFILES, default=settings.PROFILE,
                        help="DER profile: pkcs1 (RSAPrivateKey/RSAPublicKey) or pkcs8 (PKCS#8/SubjectPublicKeyInfo)")
    parser.add_argument("--timeout", type=float, default=settings.TIMEOUT,
                        help="Abort key generation after this many seconds")
    parser.add_argument("--check", action="store_true",
                        help="Reload the written file and verify the key pair")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    return parser


def run(args, settings):
    bits = args.bits if args.bits.strip() else settings.KEY_SIZE
    provisioner = KeyProvisioner(
        profile=args.profile,
        private_name=settings.PRIVATE_NAME,
        public_name=settings.PUBLIC_NAME,
        timeout=args.timeout,
    )
    result = provisioner.provision(bits=bits, destination=args.output)

    if args.check:
        keys = load_from_env(settings.PRIVATE_NAME, settings.PUBLIC_NAME, env_file=str(result.path))
        check_keys(keys)
        logger.info(f"Key pair in {result.path} verified ({keys.profile} profile)")

    return result


def main(argv=None):
    try:
        settings = Settings()
    except KeyProvisioningError as e:
        print(f"envkeys: {e.stage} failed: {e}", file=sys.stderr)
        return 1

    args = build_parser(settings).parse_args(argv)
    level = logging.DEBUG if args.verbose else getattr(logging, settings.LOG_LEVEL, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        result = run(args, settings)
    except KeyProvisioningError as e:
        print(f"envkeys: {e.stage} failed: {e}", file=sys.stderr)
        return 1

    print(f"RSA key pair written to {result.path} ({result.bits} bits, {result.profile})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
