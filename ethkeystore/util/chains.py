"""
Copyright (c) 2019-2020, The Decred developers
See LICENSE for details
"""

from ethkeystore import KeystoreError
from ethkeystore.eth import addrlib as ethaddr


class BipIDs:
    """
    BIP0044 IDs for supported assets.
    """

    ethereum = 60
    ethereumClassic = 61
    poa = 178
    callisto = 820
    tomoChain = 889
    thunderToken = 1001
    goChain = 6060


"""IDSymbols converts BIP0044 ID to a lower-case ticker symbol."""
IDSymbols = {
    BipIDs.ethereum: "eth",
    BipIDs.ethereumClassic: "etc",
    BipIDs.poa: "poa",
    BipIDs.callisto: "clo",
    BipIDs.tomoChain: "tomo",
    BipIDs.thunderToken: "tt",
    BipIDs.goChain: "go",
}


"""
SymbolIDs is a Python dict mapping ticker symbols for supported assets to
their BIP0044 ID.
"""
SymbolIDs = {v: k for k, v in IDSymbols.items()}


"""
AddressCodecs maps the asset's BIP0044 ID to the address type used to encode
its addresses. Every supported asset is an account-model secp256k1 chain that
shares the keccak256/EIP-55 address scheme.
"""
AddressCodecs = {coinType: ethaddr.Address for coinType in IDSymbols}


def parseCoinType(coinType):
    """
    Parse the coin type. If coinType is a string, it will be converted to the
    BIP0044 ID. If it is already an integer, it is returned as is.

    Args:
        coinType (int or str): The asset. BIP0044 ID or ticker symbol.

    Returns:
        int: The BIP0044 ID.
    """
    if isinstance(coinType, str):
        ticker = coinType.lower()
        if ticker not in SymbolIDs:
            raise KeystoreError(f"ticker symbol {ticker} not found")
        coinType = SymbolIDs[ticker]
    if not isinstance(coinType, int):
        raise KeystoreError(f"unsupported type for coinType {type(coinType)}")
    return coinType


def addressCodec(coinType):
    """
    The address type for the asset.

    Args:
        coinType (int or str): The asset. BIP0044 ID or ticker symbol.

    Returns:
        type: The address class, with a fromPublicKey constructor.
    """
    coinType = parseCoinType(coinType)
    if coinType not in AddressCodecs:
        raise KeystoreError(f"unsupported coin type {coinType}")
    return AddressCodecs[coinType]


def defaultPath(coinType, index=0):
    """
    The BIP0044 path of the external address at index for the asset's first
    account, m/44'/<coin type>'/0'/0/<index>.

    Args:
        coinType (int or str): The asset. BIP0044 ID or ticker symbol.
        index (int): The address index.

    Returns:
        str: The derivation path.
    """
    return f"m/44'/{parseCoinType(coinType)}'/0'/0/{index}"
