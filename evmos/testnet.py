"""Arguments and address helpers for setting up a local multi-validator testnet."""

from __future__ import annotations

import ipaddress
import random
import socket
from dataclasses import dataclass

from evmos.config import BASE_DENOM

DEFAULT_NUM_VALIDATORS = 4
DEFAULT_OUTPUT_DIR = "./.testnets"
DEFAULT_KEY_ALGORITHM = "eth_secp256k1"
DEFAULT_KEYRING_BACKEND = "os"
DEFAULT_MIN_GAS_PRICES = f"0.000006{BASE_DENOM}"
DEFAULT_NODE_DIR_PREFIX = "node"
DEFAULT_NODE_DAEMON_HOME = "evmosd"
DEFAULT_STARTING_IP_ADDRESS = "192.168.0.1"
DEFAULT_RPC_ADDRESS = "tcp://0.0.0.0:26657"
DEFAULT_API_ADDRESS = "tcp://0.0.0.0:1317"
DEFAULT_GRPC_ADDRESS = "0.0.0.0:9900"
DEFAULT_JSONRPC_ADDRESS = "0.0.0.0:8545"

P2P_PORT = 26656
NODE_DIR_PERM = 0o755

_MAX_CHAIN_NUMBER = 9999999999999
# Any routable address works here: no packet is sent, the socket only picks a route.
_PROBE_ADDRESS = ("10.255.255.255", 1)


@dataclass
class InitArgs:
    """Settings for writing the files of a testnet run in separate processes."""

    algo: str = DEFAULT_KEY_ALGORITHM
    chain_id: str = ""
    keyring_backend: str = DEFAULT_KEYRING_BACKEND
    min_gas_prices: str = DEFAULT_MIN_GAS_PRICES
    node_daemon_home: str = DEFAULT_NODE_DAEMON_HOME
    node_dir_prefix: str = DEFAULT_NODE_DIR_PREFIX
    num_validators: int = DEFAULT_NUM_VALIDATORS
    output_dir: str = DEFAULT_OUTPUT_DIR
    starting_ip_address: str = DEFAULT_STARTING_IP_ADDRESS


@dataclass
class StartArgs:
    """Settings for launching an in-process testnet."""

    algo: str = DEFAULT_KEY_ALGORITHM
    api_address: str = DEFAULT_API_ADDRESS
    chain_id: str = ""
    grpc_address: str = DEFAULT_GRPC_ADDRESS
    min_gas_prices: str = DEFAULT_MIN_GAS_PRICES
    output_dir: str = DEFAULT_OUTPUT_DIR
    rpc_address: str = DEFAULT_RPC_ADDRESS
    jsonrpc_address: str = DEFAULT_JSONRPC_ADDRESS
    num_validators: int = DEFAULT_NUM_VALIDATORS
    enable_logging: bool = False
    print_mnemonic: bool = True


def _parse_ipv4(ip: str) -> ipaddress.IPv4Address | None:
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return None
    if isinstance(address, ipaddress.IPv4Address):
        return address
    return address.ipv4_mapped


def calculate_ip(ip: str, i: int) -> str:
    """Return ip with its last octet raised by i, wrapping within the octet."""
    ipv4 = _parse_ipv4(ip)
    if ipv4 is None:
        raise ValueError(f"{ip}: non ipv4 address")
    octets = bytearray(ipv4.packed)
    octets[3] = (octets[3] + max(i, 0)) % 256
    return str(ipaddress.IPv4Address(bytes(octets)))


def _external_ip() -> str:
    candidates: list[str] = []
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as probe:
            probe.connect(_PROBE_ADDRESS)
            candidates.append(probe.getsockname()[0])
    except OSError:
        pass
    try:
        candidates.extend(socket.gethostbyname_ex(socket.gethostname())[2])
    except OSError:
        pass
    for candidate in candidates:
        address = _parse_ipv4(candidate)
        if address is not None and not address.is_loopback and not address.is_unspecified:
            return str(address)
    raise OSError("are you connected to the network?")


def get_ip(i: int, starting_ip_address: str) -> str:
    """Return the address of node i, or this host's external address if none is given."""
    if not starting_ip_address:
        return _external_ip()
    return calculate_ip(starting_ip_address, i)


def new_chain_id() -> str:
    """Return a random chain identifier of the form evmos_<n>-1."""
    return f"evmos_{random.randint(1, _MAX_CHAIN_NUMBER)}-1"


def node_dir_name(prefix: str, index: int) -> str:
    """Return the directory name of node index, such as node0."""
    return f"{prefix}{index}"


def persistent_peer_memo(node_id: str, ip: str) -> str:
    """Return the peer address written into a validator's genesis transaction."""
    return f"{node_id}@{ip}:{P2P_PORT}"