# Localized status strings
#
# Keys match the browser edition's language files. "%s" is replaced with
# the service name. Missing keys and unknown languages fall back to English.

from typing import Dict, Optional

from .config import DEFAULT_LANGUAGE, get_language

STRINGS: Dict[str, Dict[str, str]] = {
    "English": {
        "addService": 'Added "%s"',
        "removeService": 'Removed "%s"',
        "removeNoService": 'Nothing to remove for "%s"',
        "findService": 'Found "%s"',
        "findNoService": 'Can\'t find "%s"',
        "decryptFailed": "Decryption failed — ensure the Magic Number is correct.",
        "importFinished": "Import finished",
        "importNeedsMagic": "Imported file contains plaintext entries. Enter Magic Number you want to encrypt them with: ",
        "exportFinished": 'Exported to "%s"',
        "emptyVault": "No services stored",
    },
    "Chinese": {
        "addService": "已添加“%s”",
        "removeService": "已删除“%s”",
        "removeNoService": "没有可删除的“%s”",
        "findService": "已找到“%s”",
        "findNoService": "找不到“%s”",
        "decryptFailed": "解密失败，请确认魔数是否正确。",
        "importFinished": "导入完成",
        "importNeedsMagic": "导入文件包含明文条目。请输入用于加密的魔数：",
        "exportFinished": "已导出到“%s”",
        "emptyVault": "没有保存的服务",
    },
}

LANGUAGES = tuple(STRINGS)


def get_string(key: str, language: Optional[str] = None) -> str:
    """Look up a string, falling back to English and then to the key itself."""
    table = STRINGS.get(language or get_language(), STRINGS[DEFAULT_LANGUAGE])
    return table.get(key) or STRINGS[DEFAULT_LANGUAGE].get(key, key)


def format_message(key: str, value: str = "", language: Optional[str] = None) -> str:
    return get_string(key, language).replace("%s", value)
