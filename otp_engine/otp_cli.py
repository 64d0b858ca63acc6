#!/usr/bin/env python3
"""
otp_cli.py — CLI wrapper cho otp_core.py

Cung cấp các subcommand:
- secret : sinh secret ngẫu nhiên (in ra Base32 và otpauth URI)
- totp   : hiển thị mã TOTP (một lần hoặc --watch theo thời gian thực)
- hotp   : sinh mã HOTP cho một counter
- uri    : in ra otpauth URIs
- verify : xác minh mã OTP (TOTP/HOTP)
- encode / decode : tiện ích Base32

Secret lấy từ --secret hoặc biến môi trường OTP_SECRET (CLI không lưu secret).

Exit code: 0 = OK / mã hợp lệ, 1 = mã không hợp lệ, 2 = lỗi cấu hình / encoding.
"""

import argparse
import logging
import os
import sys
import time

from . import otp_core
from .algorithms import DEFAULT_DIGITS, DEFAULT_TIME_STEP, SUPPORTED_DIGITS, HashKind, OTPParams
from .errors import OTPError
from .log_handler import build_logger
from .provisioning import format_hotp_uri, format_otpauth_uri

SECRET_ENV = "OTP_SECRET"


class CLIUsageError(Exception):
    pass


def _params(args) -> OTPParams:
    return OTPParams(
        hash_kind=args.algorithm,
        digits=args.digits,
        time_step=getattr(args, "period", DEFAULT_TIME_STEP),
    )


def _secret(args) -> str:
    secret = args.secret or os.environ.get(SECRET_ENV)
    if not secret:
        raise CLIUsageError(f"No secret given. Use --secret or set {SECRET_ENV}.")
    return secret


# --- CLI command handlers ---
def cmd_secret(args) -> int:
    params = _params(args)
    secret = otp_core.generate_secret(params.hash_kind)
    print(secret)
    if args.account:
        print("TOTP URI:", format_otpauth_uri(secret, args.account, args.issuer, params))
    return 0


def cmd_totp(args) -> int:
    secret = _secret(args)
    params = _params(args)
    if not args.watch:
        code, remaining = otp_core.totp(secret, args.timestamp, params)
        print(f"TOTP ({params.digits}d): {code}  (valid ~{remaining:2d}s)")
        return 0

    print(f"Press Ctrl+C to quit. Generating {params.digits}-digit TOTP every {params.time_step}s...\n")
    last_code = None
    try:
        while True:
            code, remaining = otp_core.totp(secret, time.time(), params)
            if code != last_code:
                print(f"TOTP ({params.digits}d): {code}  (valid ~{remaining:2d}s)")
                last_code = code
            else:
                print(f".. {remaining:2d}s left", end="\r", flush=True)
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nBye.")
    return 0


def cmd_hotp(args) -> int:
    params = _params(args)
    code = otp_core.hotp(_secret(args), args.counter, params)
    print(f"HOTP({params.digits}d, counter={args.counter}): {code}")
    return 0


def cmd_uri(args) -> int:
    secret = _secret(args)
    params = _params(args)
    print("TOTP URI:")
    print(format_otpauth_uri(secret, args.account, args.issuer, params))
    print("\nHOTP URI:")
    print(format_hotp_uri(secret, args.account, args.issuer, params, counter=args.counter))
    return 0


def cmd_verify_totp(args) -> int:
    offset = otp_core.verify_code(
        _secret(args), args.code, args.timestamp, args.window, _params(args)
    )
    if offset is None:
        print("[-] TOTP code is INVALID")
        return 1
    print(f"[+] TOTP code is VALID (offset {offset:+d})")
    return 0


def cmd_verify_hotp(args) -> int:
    ok, new_counter = otp_core.verify_hotp(
        _secret(args), args.code, args.counter, args.look_ahead, _params(args)
    )
    if not ok:
        print("[-] HOTP code is INVALID")
        return 1
    print(f"[+] HOTP code is VALID (next counter = {new_counter})")
    return 0


def cmd_encode(args) -> int:
    try:
        data = bytes.fromhex(args.data) if args.hex else args.data.encode("utf-8")
    except ValueError as e:
        raise CLIUsageError(f"Invalid hex input: {e}") from e
    print(otp_core.encode_base32(data))
    return 0


def cmd_decode(args) -> int:
    raw = otp_core.decode_base32(args.text)
    print(raw.hex() if args.hex else raw.decode("utf-8", errors="replace"))
    return 0


def cmd_help(args) -> int:
    print("'python -m otp_engine.otp_cli -h' for help.")
    return 0


# --- Argparse builder ---
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="TOTP/HOTP (RFC 4226/6238) generator and verifier")
    p.add_argument("--verbose", action="store_true", help="Verbose (debug) logging")
    sub = p.add_subparsers(dest="cmd")
    p.set_defaults(func=cmd_help)

    algo = argparse.ArgumentParser(add_help=False)
    algo.add_argument("--algorithm", default="SHA1", choices=[k.value for k in HashKind],
                      help="HMAC hash algorithm")
    algo.add_argument("--digits", type=int, default=DEFAULT_DIGITS, choices=SUPPORTED_DIGITS,
                      help="Number of OTP digits")

    period = argparse.ArgumentParser(add_help=False)
    period.add_argument("--period", type=int, default=DEFAULT_TIME_STEP, help="TOTP time step (seconds)")

    secret = argparse.ArgumentParser(add_help=False)
    secret.add_argument("--secret", help=f"Base32 secret (default: ${SECRET_ENV})")

    label = argparse.ArgumentParser(add_help=False)
    label.add_argument("--issuer", default="otp-tool", help="Issuer label for otpauth URI")

    # secret
    ps = sub.add_parser("secret", parents=[algo, period, label], help="Generate a random Base32 secret")
    ps.add_argument("--account", help="Also print the otpauth URI for this account")
    ps.set_defaults(func=cmd_secret)

    # totp
    pt = sub.add_parser("totp", parents=[secret, algo, period], help="Show TOTP code")
    pt.add_argument("--timestamp", type=float, help="Epoch seconds (default: now)")
    pt.add_argument("--watch", action="store_true", help="Refresh in real time")
    pt.set_defaults(func=cmd_totp)

    # hotp
    ph = sub.add_parser("hotp", parents=[secret, algo], help="Generate HOTP code for a specific counter")
    ph.add_argument("--counter", type=int, required=True)
    ph.set_defaults(func=cmd_hotp)

    # uri
    pu = sub.add_parser("uri", parents=[secret, algo, period, label], help="Print otpauth URIs for TOTP/HOTP")
    pu.add_argument("--account", default="user@example", help="Account label for otpauth URI")
    pu.add_argument("--counter", type=int, default=0, help="Initial HOTP counter")
    pu.set_defaults(func=cmd_uri)

    # verify
    pv = sub.add_parser("verify", help="Verify an OTP code (TOTP or HOTP)")
    sub_v = pv.add_subparsers(dest="verify_type")
    pv.set_defaults(func=cmd_help)

    pvt = sub_v.add_parser("totp", parents=[secret, algo, period], help="Verify a TOTP code")
    pvt.add_argument("--code", required=True, help="OTP code to verify")
    pvt.add_argument("--window", type=int, default=otp_core.DEFAULT_WINDOW, help="Allowed +/- step window")
    pvt.add_argument("--timestamp", type=float, help="Epoch seconds (default: now)")
    pvt.set_defaults(func=cmd_verify_totp)

    pvh = sub_v.add_parser("hotp", parents=[secret, algo], help="Verify a HOTP code")
    pvh.add_argument("--code", required=True, help="OTP code to verify")
    pvh.add_argument("--counter", type=int, required=True, help="Current HOTP counter")
    pvh.add_argument("--look-ahead", type=int, default=otp_core.DEFAULT_LOOK_AHEAD,
                     help="Allowed counter look-ahead")
    pvh.set_defaults(func=cmd_verify_hotp)

    # base32 utilities
    pe = sub.add_parser("encode", help="Base32-encode text (or hex bytes with --hex)")
    pe.add_argument("data")
    pe.add_argument("--hex", action="store_true", help="Input is hex")
    pe.set_defaults(func=cmd_encode)

    pd = sub.add_parser("decode", help="Decode Base32 text")
    pd.add_argument("text")
    pd.add_argument("--hex", action="store_true", help="Print bytes as hex")
    pd.set_defaults(func=cmd_decode)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    build_logger("otp_engine", logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return args.func(args)
    except (OTPError, CLIUsageError) as e:
        print(f"[!] {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
