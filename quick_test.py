"""
Quick Smoke Test for a running Escape Room Builder API
Generates a room, stores it, serves it back and checks the bytes match.
"""

import os
import sys

import requests
from dotenv import load_dotenv

load_dotenv()
API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")


def quick_test(preset_types, time_limit):
    """Round trip one generated room through the live API"""
    config = {
        "roomName": "Smoke Test Room",
        "timeLimitMinutes": time_limit,
        "selectedTypeIds": preset_types,
    }

    print(f"\n🚀 Generating room with {len(preset_types)} challenges ({time_limit} min)")
    print(f"📍 API: {API_BASE_URL}\n")

    try:
        generated = requests.post(f"{API_BASE_URL}/api/generate", json=config, timeout=30)
        generated.raise_for_status()
        html = generated.json()["htmlText"]

        created = requests.post(f"{API_BASE_URL}/api/escape-rooms", json={
            "name": config["roomName"],
            "timeLimitMinutes": time_limit,
            "challengeTypeIds": preset_types,
            "htmlOutput": html,
        }, timeout=30)
        created.raise_for_status()
        room_id = created.json()["id"]
        print(f"💾 Stored as {room_id}")

        served = requests.get(f"{API_BASE_URL}/api/serve/{room_id}", timeout=30)
        served.raise_for_status()
        if served.text != html:
            print("❌ FAILED: served HTML differs from the stored document\n")
            return False

        missing = requests.get(f"{API_BASE_URL}/api/serve/does-not-exist", timeout=30)
        if missing.status_code != 404:
            print(f"❌ FAILED: unknown id returned HTTP {missing.status_code}\n")
            return False

        print("✅ SUCCESS! Stored document served back verbatim\n")
        return True

    except requests.exceptions.RequestException as e:
        print(f"❌ ERROR: {str(e)}\n")
        return False


if __name__ == "__main__":
    types = sys.argv[1:] or ["format", "debug", "generate"]
    sys.exit(0 if quick_test(types, 10) else 1)
