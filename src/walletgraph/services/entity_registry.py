from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from walletgraph.core.enums import EntityKind, EntitySource
from walletgraph.core.models import EntityAnnotation
from walletgraph.ports.entity_lookup_port import EntityLookupPort


@dataclass(frozen=True)
class KnownEntity:
    name: str
    kind: EntityKind
    description: str
    addresses: Tuple[str, ...]


KNOWN_ENTITIES: Tuple[KnownEntity, ...] = (
    # NFT marketplaces
    KnownEntity("Magic Eden", EntityKind.MARKETPLACE, "NFT Marketplace", (
        "M2mx93ekt1fmXSVkTrUL9xVFHkmME8HTUi5Cyc5aF7K",
        "MEisE1HzehtrDpAAT8PnLHjpSSkRYakotTuJRPjTpo8",
    )),
    KnownEntity("Tensor", EntityKind.MARKETPLACE, "NFT Marketplace", (
        "TSWAPaqyCSx2KABk68Shruf4rp7CxcNi8hAsbdwmHbN",
        "TCMPhJdwDryooaGtiocG1u3xcYbRpiJzb283XfCZsDp",
    )),
    KnownEntity("OpenSea", EntityKind.MARKETPLACE, "NFT Marketplace (Auction House)", (
        "hausS13jsjafwWwGqZTUQRmWyvyxn9EQpqMwV1PBBmk",
    )),

    # DEXs / aggregators
    KnownEntity("Jupiter", EntityKind.DEX, "DEX Aggregator", (
        "JUP4Fb2cqiRUcaTHdrPC8h2gNsA2ETXiPDD33WcGuJB",
        "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4",
    )),
    KnownEntity("Raydium", EntityKind.DEX, "DEX", (
        "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8",
        "CAMMCzo5YL8w4VFF8KVHrK22GGUsp5VTaW7grrKgrWqK",
        "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1",
    )),
    KnownEntity("Orca", EntityKind.DEX, "DEX", (
        "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc",
        "9W959DqEETiGZocYWCQPaJ6sBmUzgfxXfqGeTEdp3aQP",
    )),
    KnownEntity("Meteora", EntityKind.DEX, "DEX", (
        "LBUZKhRxPF3XUpBCjp4YzTKgLccjZhTSDM9YuVaPwxo",
    )),
    KnownEntity("Phoenix", EntityKind.DEX, "Order Book DEX", (
        "PhoeNiXZ8ByJGLkxNfZRnkUfjvmuYqLR89jjFHGqdXY",
    )),
    KnownEntity("Pump.fun", EntityKind.DEX, "Token Launchpad", (
        "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P",
        "CebN5WGQ4jvEPvsVU4EoHEpgzq1VV7AbicfhtW4xC9iM",
    )),

    # Staking
    KnownEntity("Marinade", EntityKind.STAKING, "Liquid Staking", (
        "MarBmsSgKXdrN1egZf5sqe1TMai9K1rChYNDJgjq7aD",
    )),
    KnownEntity("Lido", EntityKind.STAKING, "Liquid Staking", (
        "CrWpNEbW5YJcawrnw1V5jFWnqDpMsi6M9Vz2WrfWxK3r",
    )),
    KnownEntity("Jito", EntityKind.STAKING, "Liquid Staking", (
        "Jito4APyf642JPZPx3hGc6WWJ8zPKtRbRs4P815Awbb",
    )),

    # Lending / yield / defi
    KnownEntity("Solend", EntityKind.LENDING, "Lending Protocol", (
        "So1endDq2YkqhipRh3WViPa8hdiSpxWy6z3Z6tMCpAo",
    )),
    KnownEntity("MarginFi", EntityKind.LENDING, "Lending Protocol", (
        "MFv2hWf31Z9kbCa1snEPYctwafyhdvnV7FZnsebVacA",
    )),
    KnownEntity("Kamino Lend", EntityKind.LENDING, "Lending Protocol", (
        "KLend2g3cP87fffoy8q1mQqGKjrxjC8boSyAYavgmjD",
    )),
    KnownEntity("Kamino Liquidity", EntityKind.YIELD, "Automated Liquidity Vaults", (
        "6LtLpnUFNByNXLyCoK9wA2MykKAmQNZKBdY8s47dehDc",
    )),
    KnownEntity("Drift", EntityKind.DEFI, "Perpetuals Exchange", (
        "dRiftyHA39MWEi3m9aunc5MzRF1JYuBsbn6VPcn33UH",
    )),

    # Oracles / governance / gaming
    KnownEntity("Pyth", EntityKind.ORACLE, "Price Oracle", (
        "FsJ3A3u2vn5cTVofAjvy6y5kwABJAqYWpe4975bi2epH",
        "rec5EKMGg6MxZYaMdyBfgwp4d5rB9T1VQH5pJv5LtFJ",
    )),
    KnownEntity("Switchboard", EntityKind.ORACLE, "Oracle Network", (
        "SW1TCH7qEPTdLsDHRgPuMQjbQxKdH2aBStViMFnt64f",
    )),
    KnownEntity("Realms", EntityKind.DAO, "DAO Governance", (
        "GovER5Lthms3bLBqWub97yVrMPEMSVWk5EwXp8mRD8Wp",
    )),
    KnownEntity("Star Atlas", EntityKind.GAMING, "Game Marketplace", (
        "traderDnaR5w6Tcoi3NFm53i48FTDNbGjBSZwWXDRrg",
    )),

    # Wallet programs / bridges
    KnownEntity("Squads", EntityKind.WALLET, "Multisig Wallet", (
        "SMPLecH534NA9acpos4G6x7uf3LWbCAwZQE9e8ZekMu",
        "SQDS4ep65T869zMMBKyuUq6aD6EgTu8psMjkvj52pCf",
    )),
    KnownEntity("Wormhole", EntityKind.BRIDGE, "Cross-chain Bridge", (
        "worm2ZoG2kUd4vFXhvjh93UUH596ayRfgQ2MgjNMTth",
        "wormDTUJ6AWPNvk59vGQbDvGJmqbDTdgWgAqcLBCgUb",
        "WormT3McKhFJ2RkiGpdY9QeS3gn9sKd3LqBKZU7wq4cn",
    )),
    KnownEntity("deBridge", EntityKind.BRIDGE, "Cross-chain Bridge", (
        "DEbrdGj3HsRsAzx6uH4MKyREKxVAfBydijLUF3ygsFfh",
    )),

    # CEX hot wallets (partial)
    KnownEntity("Binance", EntityKind.EXCHANGE, "Centralized Exchange", (
        "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM",
        "2ojv9BAiHUrvsm9gxDe7fJSzbNZSJcxZvf8dqmWGHG8S",
    )),
    KnownEntity("Coinbase", EntityKind.EXCHANGE, "Centralized Exchange", (
        "H8sMJSCQxfKiFTCfDR3DUMLPwcRbM61LGFJ8N4dK3WjS",
        "2AQdpHJ2JpcEgPiATUXjQxA8QmafFegfQwSLWSprPicm",
    )),
    KnownEntity("Kraken", EntityKind.EXCHANGE, "Centralized Exchange", (
        "FWznbcNXWQuHTawe9RxvQ2LdCENssh12dsznf4RiouN5",
    )),
    KnownEntity("OKX", EntityKind.EXCHANGE, "Centralized Exchange", (
        "5VCwKtCXgCJ6kit5FybXjvriW3xELsFDhYrPSqtJNmcD",
    )),
    KnownEntity("Bybit", EntityKind.EXCHANGE, "Centralized Exchange", (
        "AC5RDfQFmDS1deWZos921JfqscXdByf8BKHs5ACWjtW2",
    )),
)


# Runtime/program accounts that show up as transfer endpoints but are never
# meaningful actors.
SYSTEM_ACCOUNTS: FrozenSet[str] = frozenset({
    "11111111111111111111111111111111",
    "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
    "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb",
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL",
    "ComputeBudget111111111111111111111111111111",
    "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s",
    "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr",
    "Memo1UhkJRfHyvLMcVucJwxXeuD728EqVDDwQDxFMNo",
    "SysvarRent111111111111111111111111111111111",
    "SysvarC1ock11111111111111111111111111111111",
    "Sysvar1nstructions1111111111111111111111111",
    "Vote111111111111111111111111111111111111111",
    "Stake11111111111111111111111111111111111111",
    "Config1111111111111111111111111111111111111",
    "AddressLookupTab1e1111111111111111111111111",
    "BPFLoader2111111111111111111111111111111111",
    "BPFLoaderUpgradeab1e11111111111111111111111",
    "So11111111111111111111111111111111111111112",
})


class EntityRegistry(EntityLookupPort):
    """
    Immutable address -> EntityAnnotation table, built once at startup and
    shared by reference. Consulted before any network lookup.
    """

    name = "registry"

    def __init__(
        self,
        entities: Iterable[KnownEntity] = KNOWN_ENTITIES,
        system_accounts: Iterable[str] = SYSTEM_ACCOUNTS,
    ) -> None:
        index: Dict[str, EntityAnnotation] = {}
        for entity in entities:
            annotation = EntityAnnotation.create(
                name=entity.name,
                kind=entity.kind,
                description=entity.description,
                source=EntitySource.REGISTRY,
            )
            for address in entity.addresses:
                if address in index:
                    raise ValueError(f"address {address} registered twice ({index[address].name}, {entity.name})")
                index[address] = annotation
        self._index = index
        self._system = frozenset(system_accounts)

    def resolve(self, address: str) -> Optional[EntityAnnotation]:
        return self._index.get(address)

    def is_system_account(self, address: str) -> bool:
        return address in self._system

    def __contains__(self, address: object) -> bool:
        return address in self._index

    def __len__(self) -> int:
        return len(self._index)
