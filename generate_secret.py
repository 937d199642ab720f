import secrets


def generate_env():
    with open(".env", "w", encoding="utf-8") as f:
        f.write(f"SECRET_KEY={secrets.token_hex(64)}\n")
        f.write(f"EVENT_PASSCODE={secrets.token_urlsafe(8)}\n")


if __name__ == "__main__":
    generate_env()
