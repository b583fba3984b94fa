"""The Command Line Interface for the utility, including Interactive elements.

A hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface) that generates the INTERACTIVE part
on-the-fly based on the missing components of the CLI interaction, including the option that none are included.
With `--non-interactive` every missing argument without a default is an error instead of a prompt.

Typical usage example:

    rsakit keygen -p key.pub -P key.priv
    rsakit -n encrypt -p key.pub --message "Hi there!" --label greeting
    python -m rsakit
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import hashlib
import logging
import pathlib
import sys
import typing
import warnings

import rsakit
from rsakit import b64
from rsakit import keygen as kg
from rsakit import oaep
from rsakit.bigints import bytes_to_integer
from rsakit.bigints import integer_to_bytes


class HelpData(typing.NamedTuple):
    description: str
    format: typing.Type = str
    choices: list[str] | None = None
    default: typing.Any = None
    advanced: bool = False


help_dict: dict[str, HelpData] = {
    "subcommand":
        HelpData(
            description="The available subcommands in rsakit.",
            choices=["keygen", "encrypt", "decrypt", "sign", "verify"],
        ),
    "keygen":
        HelpData("Key generation utility."),
    "encrypt":
        HelpData("Encryption utility."),
    "decrypt":
        HelpData("Decryption utility."),
    "sign":
        HelpData("Signing utility."),
    "verify":
        HelpData("Signature verification utility."),
    "public_key":
        HelpData(
            description="Location of the public key file.",
            format=pathlib.Path,
        ),
    "private_key":
        HelpData(
            description="Location of the private key file.",
            format=pathlib.Path,
        ),
    "message":
        HelpData(
            description="Message or path to file containing payload. If Path start with `P:`",
            format=str,
        ),
    "label":
        HelpData(
            description="Encrypted payload label. Used to verify during decryption.",
            format=str,
            advanced=True,
            default="",
        ),
    "encoding":
        HelpData(description="Payload encoding.", choices=["utf-8", "utf-16", "ascii"], advanced=True, default="utf-8"),
    "academic":
        HelpData(
            description="Whether to use raw RSA without padding. Warning! Unsecure.",
            format=bool,
            advanced=True,
            default=False,
        ),
    "keysize":
        HelpData(
            description="Key size (in bits).",
            choices=["2048", "3072", "4096"],
            default="2048",
        ),
    "e_encrypting":
        HelpData(
            description="Public encrypting exponent.",
            format=int,
            advanced=True,
            default=kg.DEFAULT_PUBLIC_ENCRYPTING_EXPONENT,
        ),
    "e_signing":
        HelpData(
            description="Public signing exponent.",
            format=int,
            advanced=True,
            default=kg.DEFAULT_PUBLIC_SIGNING_EXPONENT,
        ),
    "sha":
        HelpData(description="Specific SHA algorithm to use",
                 choices=list(oaep.HASH_TLL.keys()),
                 advanced=True,
                 default=oaep.DEFAULT_HASH),
    "signature":
        HelpData(
            description="The signature to validate against the payload and public key.",
            format=str,
        ),
    "overwrite":
        HelpData(
            description="Overwrite specified destination files if they exist?",
            choices=["Y", "N"],
            default="N",
        )
}

needs = {
    "keygen": ("public_key", "private_key", "keysize", "e_encrypting", "e_signing"),
    "encrypt": ("public_key", "message", "label", "sha", "academic", "encoding"),
    "decrypt": ("private_key", "message", "label", "sha", "academic", "encoding"),
    "sign": ("private_key", "message", "sha"),
    "verify": ("public_key", "message", "signature", "sha")
}

pubkey = argparse.ArgumentParser(add_help=False)
pubkey.add_argument("--public_key", "-p", type=help_dict["public_key"].format, help=help_dict["public_key"].description)
privkey = argparse.ArgumentParser(add_help=False)
privkey.add_argument("--private_key",
                     "-P",
                     type=help_dict["private_key"].format,
                     help=help_dict["private_key"].description)
payloads = argparse.ArgumentParser(add_help=False)
payloads.add_argument("--message", type=help_dict["message"].format, help=help_dict["message"].description)
encp = argparse.ArgumentParser(add_help=False)
encp.add_argument("--encoding", "-e", choices=help_dict["encoding"].choices, help=help_dict["encoding"].description)
sha = argparse.ArgumentParser(add_help=False)
sha.add_argument("--sha", "-s", choices=help_dict["sha"].choices, help=help_dict["sha"].description)
label = argparse.ArgumentParser(add_help=False)
label.add_argument("--label", "-l", type=help_dict["label"].format, help=help_dict["label"].description)
academic = argparse.ArgumentParser(add_help=False)
academic.add_argument("--academic", "-A", action="store_true", default=None, help=help_dict["academic"].description)
corep = argparse.ArgumentParser(prog="rsakit")
corep.add_argument("--version", "-v", action="version", version=f"%(prog)s {rsakit.__version__}")
corep.add_argument("--non-interactive", "-n", action="store_true", help="Enable non-interactive mode")
corep.add_argument("--advanced", "-a", action="store_true", help="Enable advanced mode, for interactive mode")
corep.add_argument("--verbose", "-V", action="store_true", help="Log debug output to stderr")
commands = corep.add_subparsers(dest="subcommand", title="Subcommands")

keygen = commands.add_parser("keygen", parents=[privkey, pubkey], help=help_dict["keygen"].description)
keygen.add_argument("--keysize", choices=help_dict["keysize"].choices, help=help_dict["keysize"].description)
keygen.add_argument("--e-encrypting", type=help_dict["e_encrypting"].format, help=help_dict["e_encrypting"].description)
keygen.add_argument("--e-signing", type=help_dict["e_signing"].format, help=help_dict["e_signing"].description)
keygen.add_argument("--overwrite", "-o", action="store_const", const="Y", help=help_dict["overwrite"].description)

encrypt = commands.add_parser("encrypt",
                              parents=[pubkey, payloads, label, sha, encp, academic],
                              help=help_dict["encrypt"].description)
decrypt = commands.add_parser("decrypt",
                              parents=[privkey, payloads, label, sha, encp, academic],
                              help=help_dict["decrypt"].description)

sign = commands.add_parser("sign", parents=[privkey, payloads, sha], help=help_dict["sign"].description)
verify = commands.add_parser("verify", parents=[pubkey, payloads, sha], help=help_dict["verify"].description)
verify.add_argument("--signature", "-S", type=help_dict["signature"].format, help=help_dict["signature"].description)


def resolve_default(arg: str, mode: tuple[bool, bool]) -> typing.Any:
    """Returns the default that stands in for a missing `arg`, or None when the user has to be asked.

    Raises:
        IOError: If `arg` has no default and non-interactive mode is active.
    """
    helper_data = help_dict[arg]
    non_interactive, advanced = mode
    if (non_interactive or (helper_data.advanced and not advanced)) and helper_data.default is not None:
        return helper_data.default
    if non_interactive:
        raise IOError(f"Argument {arg} is missing and non-interactive mode is active.")
    return None


def _parse_answer(helper_data: HelpData, answer: str) -> tuple[bool, typing.Any, str]:
    # (accepted, value, complaint)
    if not answer:
        if helper_data.default is not None:
            return True, helper_data.default, ""
        return False, None, "Please provide a value."
    if helper_data.choices is not None:
        if answer in helper_data.choices:
            return True, answer, ""
        return False, None, "Please select an option from the list."
    try:
        return True, helper_data.format(answer), ""
    except ValueError:
        return False, None, f"We could not convert your value to {helper_data.format.__name__}."


def prompt_for(arg: str, mode: tuple[bool, bool], prntr: typing.Callable = print) -> typing.Any:
    """Fills in a missing argument, from its default or by asking until the answer is usable."""
    value = resolve_default(arg, mode)
    if value is not None:
        return value
    helper_data = help_dict[arg]
    prntr(f"Please specify the {arg}!")
    prntr("Description: " + helper_data.description)
    for choice in helper_data.choices or ():
        marker = " (Default)" if choice == helper_data.default else ""
        known = help_dict.get(choice)
        prntr((f"{choice} - {known.description}" if known else choice) + marker)
    if helper_data.default is not None:
        if helper_data.choices is None:
            prntr(f"Default value: {helper_data.default}")
        prntr("To accept default just click enter. Otherwise specify value.")
    while True:
        accepted, value, complaint = _parse_answer(helper_data, input(f"{arg}: "))
        if accepted:
            return value
        prntr(complaint)


def read_message(text: str, encoding: str) -> str:
    """Returns the message itself, or the contents of the file it names with a `P:` prefix."""
    if text.startswith("P:"):
        return pathlib.Path(text[2:]).read_text(encoding=encoding)
    return text


def digest_of(message: str, hashf: str) -> int:
    """Hash of the UTF-8 message as an integer, the value that gets signed."""
    return bytes_to_integer(hashlib.new(hashf, message.encode("utf-8")).digest())


def fail(text: str) -> typing.NoReturn:
    print(text)
    sys.exit(1)


def main():
    """Core Hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface)"""
    args = corep.parse_args()
    pstatus = (args.non_interactive, args.advanced)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    def pspr(text: str):
        """Print only if not in non-interactive mode."""
        if not pstatus[0]:
            print(text)

    pspr("Welcome to rsakit!\n")
    if not args.subcommand:
        args.subcommand = prompt_for("subcommand", pstatus)
    for reqs in needs[args.subcommand]:
        if getattr(args, reqs, None) is None:
            setattr(args, reqs, prompt_for(reqs, pstatus))
        else:
            pspr(f"{reqs}: {getattr(args, reqs)}")
    pspr("\nInput Complete! Executing...")
    match args.subcommand:
        case "keygen":
            if args.private_key.exists() or args.public_key.exists():
                rs = getattr(args, "overwrite", None)
                if rs is None:
                    rs = prompt_for("overwrite", pstatus, pspr)
                if rs == "N":
                    print("Destination private or public key already exists!")
                    return
            res = rsakit.generate_keys(int(args.keysize), args.e_encrypting, args.e_signing)
            if res.not_ok:
                fail(f"Key generation failed: {res.msg}")
            res.info.private_key.export(args.private_key)
            res.info.public_key.export(args.public_key)
            pspr("\nKey pair generated!")
        case "encrypt":
            args.message = read_message(args.message, args.encoding)
            rpu = rsakit.RSAPublicKey.import_key(args.public_key).unwrap()
            encm = args.message.encode(args.encoding)
            if args.academic:
                warnings.warn("Academic encryption is unsecure! Please use with care.", RuntimeWarning)
                try:
                    ciph = rpu.encrypt_bytes(encm)
                except ValueError as exc:
                    fail(f"Encryption failed: {exc}")
            else:
                res = rsakit.encrypt_message(rpu, encm, args.label, hashf=args.sha)
                if res.not_ok:
                    fail(f"Encryption failed: {res.msg}")
                ciph = res.info
            pspr("Ciphertext:")
            print(b64.encode(ciph))
        case "decrypt":
            args.message = read_message(args.message, "ascii")
            rpk = rsakit.RSAPrivateKey.import_key(args.private_key).unwrap()
            try:
                ctext = b64.decode(args.message.strip())
            except ValueError as exc:
                fail(f"Ciphertext is not valid base64: {exc}")
            if args.academic:
                if len(ctext) != rpk.bsize:
                    fail("Decryption failed: Ciphertext does not match expected length.")
                try:
                    clear = rpk.decrypt_bytes(ctext).lstrip(b"\x00")
                except ValueError as exc:
                    fail(f"Decryption failed: {exc}")
            else:
                res = rsakit.decrypt_message(rpk, ctext, args.label, args.sha)
                if res.not_ok:
                    fail(f"Decryption failed: {res.msg}")
                clear = res.info
            pspr("Cleartext:")
            print(clear.decode(args.encoding))
        case "sign":
            args.message = read_message(args.message, "utf-8")
            rpk = rsakit.RSAPrivateKey.import_key(args.private_key).unwrap()
            signature = rpk.encrypt(digest_of(args.message, args.sha))
            pspr("Signature:")
            print(b64.encode(integer_to_bytes(signature, rpk.bsize)))
        case "verify":
            args.message = read_message(args.message, "utf-8")
            rpu = rsakit.RSAPublicKey.import_key(args.public_key).unwrap()
            try:
                sig = bytes_to_integer(b64.decode(args.signature.strip()))
                verified = rpu.decrypt(sig) == digest_of(args.message, args.sha)
            except ValueError:
                verified = False
            if verified:
                pspr("Signature Verified!")
            else:
                fail("Signature Verification Failed!")
    pspr("Thank you for using rsakit!")
    pspr("Goodbye!")


if __name__ == "__main__":
    main()
