from __future__ import annotations

from market_watcher.domain.services.felt import decode_short_string, felt_to_int, normalize_address


BYTE_ARRAY_WORD_BYTES = 31

# Well-known Starknet tokens, keyed by normalized address.
STATIC_TOKEN_SYMBOLS = {
    normalize_address(address): symbol
    for address, symbol in {
        "0x049d36570d4e46f48e99674bd3fcc84644ddd6b96f7c741b1562b82f9e004dc7": "ETH",
        "0x04718f5a0fc34cc1af16a1cdee98ffb20c31f5cd61d6ab07201858f4287c938d": "STRK",
        "0x053c91253bc9682c04929ca02ed00b3e423f6710d2ee7e0d5ebb06f3ecf368a8": "USDC",
        "0x068f5c6a61780768455de69077e07e89787839bf8166decfbf92b645209c0fb8": "USDT",
        "0x03fe2b97c1fd336e750087d68b9b867997fd64a2661ff3ca5a7c771641e8e7ac": "WBTC",
        "0x00da114221cb83fa859dbdb4c44beeaa0bb37c7537ad5ae66fe5e0efd20e6eb3": "DAI",
        "0x042b8f0484674ca266ac5d08e4ac6a3fe65bd3129795def2dca5c34ecc5f96d2": "wstETH",
        "0x075afe6402ad5a5c20dd25e10ec3b3986acaa647b77e4ae24b0cbc9a54a27a87": "EKUBO",
        "0x0124aeb495b947201f5fac96fd1138e326ad86195b98df6dec9009158a533b49": "LORDS",
    }.items()
}


def lookup_static_symbol(normalized_address: str) -> str | None:
    return STATIC_TOKEN_SYMBOLS.get(normalized_address)


def _is_byte_array(values: list[int]) -> bool:
    if len(values) < 3:
        return False
    data_len = values[0]
    pending_len = values[-1]
    return data_len == len(values) - 3 and 0 <= pending_len < BYTE_ARRAY_WORD_BYTES


def decode_symbol_felts(values: list[str | int]) -> str:
    """Decode the return data of a token ``symbol`` call.

    Three layouts are accepted:

    * a single felt holding a short string (Cairo 0 / legacy ERC20);
    * several felts, each a packed short string, concatenated in order;
    * a ``ByteArray`` struct: ``data_len, data[0..data_len), pending_word,
      pending_word_len``.
    """
    numbers = [felt_to_int(value) for value in values]
    if not numbers:
        raise ValueError("Empty symbol result.")

    if len(numbers) == 1:
        symbol = decode_short_string(numbers[0])
    elif _is_byte_array(numbers):
        words = numbers[1:-2] + [numbers[-2]]
        symbol = "".join(decode_short_string(word) for word in words)
    else:
        symbol = "".join(decode_short_string(word) for word in numbers)

    if not symbol:
        raise ValueError("Symbol decoded to an empty string.")
    return symbol


def symbol_from_felts(values: list[str | int]) -> str:
    try:
        return decode_symbol_felts(values)
    except (TypeError, ValueError):
        return " ".join(str(value) for value in values)
