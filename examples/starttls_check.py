"""Check an SMTP server's STARTTLS upgrade and the greeting that follows it."""

from __future__ import annotations

import os

from impulse import ImpulseError, Pipeline, PipelineOptions

TARGET_URL = os.getenv("IMPULSE_DEMO_URL", "tcp://localhost:25")
HELO_NAME = os.getenv("IMPULSE_DEMO_HELO", "impulse.example")


def build_pipeline(url: str) -> Pipeline:
    pipeline = Pipeline(url, use_tls=True, options=PipelineOptions(io_timeout=10.0), log_level="debug")
    # plaintext: greeting, EHLO, STARTTLS
    pipeline.add_transaction(True, "", "220")
    pipeline.add_transaction(True, f"EHLO {HELO_NAME}\r\n", "250")
    pipeline.add_transaction(True, "STARTTLS\r\n", "220")
    # secured: EHLO again, then leave
    pipeline.add_transaction(False, f"EHLO {HELO_NAME}\r\n", "250")
    pipeline.add_serialized_transaction(False, '{"request": "QUIT\\r\\n", "response": "221"}')
    return pipeline


def main() -> int:
    result = build_pipeline(TARGET_URL).send_safe()
    if result.ok:
        print(f"{TARGET_URL}: STARTTLS conversation passed")
        return 0
    print(f"{TARGET_URL}: failed after {result.reached.value}: {result.error}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
