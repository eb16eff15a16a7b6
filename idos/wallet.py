"""EVM identity: address derivation and message signing."""

from dataclasses import dataclass, field

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import to_hex


@dataclass(frozen=True)
class Identity:
    """An account's signing key and the address derived from it.

    The address is computed once from the key and is always the same
    checksummed string for a given key.
    """

    private_key: str = field(repr=False)
    address: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "address", derive_address(self.private_key),
        )

    def sign_message(self, message: str) -> str:
        """EIP-191 ``personal_sign`` of *message*.

        Returns:
            ``0x``-prefixed 65-byte signature.
        """
        signed = Account.sign_message(
            encode_defunct(text=message), private_key=self.private_key,
        )
        return to_hex(signed.signature)


def derive_address(private_key: str) -> str:
    """Return the checksummed address for *private_key*.

    Raises:
        ValueError: If the key is not a valid secp256k1 private key.
    """
    return Account.from_key(private_key).address
