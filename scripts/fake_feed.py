#!/usr/bin/env python3
"""
Fake shelf mapping feed server for local development and testing.

Serves a sample mapping sheet the way a spreadsheet "publish to web" CSV
link does:
- GET /feed.csv returns the sample mappings
- --fail makes every request return HTTP 500 (exercise cache fallback)
- --delay holds each response (exercise resolve timeouts)
- --csv serves a local file instead of the built-in sample

Run with: python scripts/fake_feed.py --port 9010
Then set: SHELF_FEED_URL="http://127.0.0.1:9010/feed.csv"
"""

import argparse
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from urllib.parse import urlparse

# Sample sheet: two libraries, overlapping ranges, Hebrew alternates
SAMPLE_FEED = """\
libraryName,libraryNameAlt,collectionName,collectionNameAlt,rangeStart,rangeEnd,shelfCode,shelfLabel,description,descriptionAlt,floor,notes
Sourasky Central Library,הספרייה המרכזית סוראסקי,Reading room 1 A - 1st floor,"אולם קריאה א'1, קומה ראשונה",100,199,SHELF-04,Cases 4-6,Philosophy & Psychology,פילוסופיה ופסיכולוגיה,1,
Sourasky Central Library,הספרייה המרכזית סוראסקי,Reading room 1 A - 1st floor,"אולם קריאה א'1, קומה ראשונה",200,296.851,SHELF-05,Case 7,Religion,דת,1,
Sourasky Central Library,הספרייה המרכזית סוראסקי,Reading room 1 B - 1st floor,"אולם קריאה א'2, קומה ראשונה",1,999,SHELF-10,,General collection,אוסף כללי,1,
Sourasky Central Library,הספרייה המרכזית סוראסקי,Reading room 1 B - 1st floor,"אולם קריאה א'2, קומה ראשונה",800,999,SHELF-11,Case 12,Literature,ספרות,1,Overflow shelving
Sourasky Central Library,הספרייה המרכזית סוראסקי,CK Science collection. 2nd floor,CK אוסף מדעים. קומה ב',QA1,QA999,SHELF-20,,Mathematics,מתמטיקה,2,
"""

# Mutable server settings, filled in by main()
SETTINGS = {"fail": False, "delay": 0.0, "body": SAMPLE_FEED}


class FakeFeedHandler(BaseHTTPRequestHandler):
    """HTTP request handler serving the mapping CSV."""

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        print(f"[FakeFeed] {args[0]}")

    def send_text(self, body: str, status: int = 200, content_type: str = "text/csv") -> None:
        data = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", f"{content_type}; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def do_GET(self) -> None:
        path = urlparse(self.path).path

        if SETTINGS["delay"]:
            time.sleep(SETTINGS["delay"])

        if path != "/feed.csv":
            self.send_text(f"Unknown endpoint: {path}", status=404, content_type="text/plain")
        elif SETTINGS["fail"]:
            self.send_text("Simulated feed failure", status=500, content_type="text/plain")
        else:
            self.send_text(SETTINGS["body"])


def main() -> None:
    parser = argparse.ArgumentParser(description="Run fake shelf mapping feed server")
    parser.add_argument(
        "--port",
        type=int,
        default=9010,
        help="Port to listen on (default: 9010)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--csv",
        type=Path,
        help="Serve this CSV file instead of the built-in sample",
    )
    parser.add_argument(
        "--fail",
        action="store_true",
        help="Answer every request with HTTP 500",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=0.0,
        help="Seconds to wait before each response",
    )
    args = parser.parse_args()

    SETTINGS["fail"] = args.fail
    SETTINGS["delay"] = args.delay
    if args.csv:
        SETTINGS["body"] = args.csv.read_text(encoding="utf-8")

    server = HTTPServer((args.host, args.port), FakeFeedHandler)
    print(f"Fake shelf mapping feed at http://{args.host}:{args.port}/feed.csv")
    if args.fail:
        print("All requests will fail with HTTP 500")
    print()

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down...")
        server.shutdown()


if __name__ == "__main__":
    main()
