from feedme.wizard import Key


def keys_from_text(text):
    return [Key.of(c) for c in text]
