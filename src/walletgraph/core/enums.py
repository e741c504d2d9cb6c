from enum import Enum


class NodeKind(str, Enum):
    INPUT = "input"
    CONNECTED = "connected"


class EdgeKind(str, Enum):
    NFT = "NFT"
    SPL_TOKEN = "SPL_TOKEN"
    NATIVE = "NATIVE"


class EntityKind(str, Enum):
    MARKETPLACE = "marketplace"
    DEX = "dex"
    STAKING = "staking"
    WALLET = "wallet"
    BRIDGE = "bridge"
    EXCHANGE = "exchange"
    LENDING = "lending"
    YIELD = "yield"
    GAMING = "gaming"
    DEFI = "defi"
    ORACLE = "oracle"
    DAO = "dao"
    SNS_DOMAIN = "sns_domain"
    LABELED_ADDRESS = "labeled_address"
    TOKEN = "token"


class EntitySource(str, Enum):
    REGISTRY = "registry"
    NAME_SERVICE = "name_service"
    LABEL_SERVICE = "label_service"
    TOKEN_LIST = "token_list"


ENTITY_ICONS = {
    EntityKind.MARKETPLACE: "🖼️",
    EntityKind.DEX: "🔄",
    EntityKind.STAKING: "🔒",
    EntityKind.WALLET: "👛",
    EntityKind.BRIDGE: "🌉",
    EntityKind.EXCHANGE: "🏦",
    EntityKind.LENDING: "💰",
    EntityKind.YIELD: "🌾",
    EntityKind.GAMING: "🎮",
    EntityKind.DEFI: "🧩",
    EntityKind.ORACLE: "🔮",
    EntityKind.DAO: "🏛️",
    EntityKind.SNS_DOMAIN: "🌐",
    EntityKind.LABELED_ADDRESS: "🏷️",
    EntityKind.TOKEN: "🪙",
}
DEFAULT_ENTITY_ICON = "👤"

ENTITY_COLORS = {
    EntityKind.MARKETPLACE: "#FF6B6B",
    EntityKind.DEX: "#4ECDC4",
    EntityKind.STAKING: "#45B7D1",
    EntityKind.WALLET: "#96CEB4",
    EntityKind.BRIDGE: "#FFEAA7",
    EntityKind.EXCHANGE: "#DDA0DD",
    EntityKind.LENDING: "#F0B27A",
    EntityKind.YIELD: "#82E0AA",
    EntityKind.GAMING: "#BB8FCE",
    EntityKind.DEFI: "#85C1E9",
    EntityKind.ORACLE: "#F8C471",
    EntityKind.DAO: "#AEB6BF",
    EntityKind.SNS_DOMAIN: "#98D8C8",
    EntityKind.LABELED_ADDRESS: "#F7DC6F",
    EntityKind.TOKEN: "#F1948A",
}
DEFAULT_ENTITY_COLOR = "#BDC3C7"
