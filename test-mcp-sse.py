#!/usr/bin/env python3
"""
Domains MCP SSE Smoke Test

Exercises a running server over the real SSE protocol:
  1. initialize
  2. tools/list
  3. resources/list + resources/read
  4. generic-search-domains
  5. cheap-search-domains (prices must be non-decreasing)
  6. recommend-products

Usage:
    python3 test-mcp-sse.py --host localhost --port 8000
    python3 test-mcp-sse.py --host localhost --port 8000 --keywords "coffee roastery"
"""

import argparse
import json
import sys
import threading
import time
import urllib.error
import urllib.request
from queue import Empty, Queue
from typing import Any, Dict, Optional


class MCPSSETester:
    def __init__(self, host: str, port: int, keywords: str):
        self.base_url = f"http://{host}:{port}"
        self.sse_url = f"{self.base_url}/mcp"
        self.keywords = keywords

        self.message_endpoint = None
        self.session_active = False
        self.response_queue = Queue()
        self.next_id = 0

    def _sse_listener(self):
        """Background thread to listen to SSE stream"""
        try:
            req = urllib.request.Request(self.sse_url)
            req.add_header('Accept', 'text/event-stream')

            with urllib.request.urlopen(req) as response:
                print("✓ SSE connection established")

                event_type = None
                event_data = []

                for raw in response:
                    line = raw.decode('utf-8').rstrip('\n\r')

                    if not line:
                        data = '\n'.join(event_data)
                        if event_type == 'endpoint':
                            self.message_endpoint = data
                            self.session_active = True
                            print(f"✓ Received message endpoint: {data}")
                        elif event_type == 'message':
                            self.response_queue.put(json.loads(data))
                        event_type = None
                        event_data = []
                    elif line.startswith('event:'):
                        event_type = line[6:].strip()
                    elif line.startswith('data:'):
                        event_data.append(line[5:].strip())

        except Exception as e:
            print(f"✗ SSE connection error: {e}")
            self.session_active = False

    def establish_session(self) -> bool:
        threading.Thread(target=self._sse_listener, daemon=True).start()

        for _ in range(50):
            if self.session_active and self.message_endpoint:
                return True
            time.sleep(0.1)

        print("✗ Session establishment timeout")
        return False

    def send_mcp_request(self, method: str, params: Optional[Dict[str, Any]] = None,
                         timeout: float = 15.0) -> Optional[Dict]:
        self.next_id += 1
        payload = {"jsonrpc": "2.0", "id": self.next_id, "method": method}
        if params:
            payload["params"] = params

        req = urllib.request.Request(
            f"{self.base_url}{self.message_endpoint}",
            data=json.dumps(payload).encode('utf-8'),
            headers={"Content-Type": "application/json"},
        )

        print(f"\n→ {method}")
        try:
            with urllib.request.urlopen(req, timeout=timeout) as response:
                if response.status != 202:
                    print(f"✗ Unexpected status code: {response.status}")
                    return None
        except urllib.error.HTTPError as e:
            print(f"✗ Request failed (HTTP {e.code}): {e.read().decode('utf-8')[:200]}")
            return None

        try:
            return self.response_queue.get(timeout=timeout)
        except Empty:
            print(f"✗ Response timeout after {timeout}s")
            return None

    def test_initialize(self) -> bool:
        response = self.send_mcp_request("initialize", {
            "protocolVersion": "2025-06-18",
            "capabilities": {},
            "clientInfo": {"name": "domains-mcp-tester", "version": "1.0.0"},
        })
        if not response or "result" not in response:
            return False

        server_info = response["result"].get("serverInfo", {})
        print(f"  Server: {server_info.get('name')} {server_info.get('version')}")
        self.send_notification("notifications/initialized")
        return True

    def send_notification(self, method: str):
        req = urllib.request.Request(
            f"{self.base_url}{self.message_endpoint}",
            data=json.dumps({"jsonrpc": "2.0", "method": method}).encode('utf-8'),
            headers={"Content-Type": "application/json"},
        )
        urllib.request.urlopen(req, timeout=5).close()

    def test_list_tools(self) -> bool:
        response = self.send_mcp_request("tools/list")
        if not response or "result" not in response:
            return False

        tools = response["result"].get("tools", [])
        for tool in tools:
            print(f"  Tool: {tool['name']} -> {tool.get('_meta', {}).get('openai/outputTemplate')}")
        return len(tools) > 0

    def test_resources(self) -> bool:
        response = self.send_mcp_request("resources/list")
        if not response or "result" not in response:
            return False

        for resource in response["result"].get("resources", []):
            read = self.send_mcp_request("resources/read", {"uri": resource["uri"]})
            if not read or "result" not in read:
                return False
            text = read["result"]["contents"][0].get("text", "")
            print(f"  {resource['uri']}: {len(text)} bytes")
        return True

    def _call(self, name: str, arguments: Dict[str, Any]) -> Optional[Dict]:
        response = self.send_mcp_request("tools/call", {"name": name, "arguments": arguments})
        if not response or "result" not in response:
            print(f"✗ {name} failed: {response}")
            return None

        result = response["result"]
        print(f"  {result['content'][0]['text']}")
        structured = result.get("structuredContent", {})
        if structured.get("error"):
            print(f"  (fallback used: {structured['error']})")
        return structured

    def test_search(self) -> bool:
        structured = self._call("generic-search-domains", {"keywords": self.keywords})
        if structured is None:
            return False
        for domain in structured.get("domains", []):
            print(f"    {domain['name']:<30} {domain['price']}")
        return structured.get("totalResults") == len(structured.get("domains", []))

    def test_cheap_search(self) -> bool:
        structured = self._call("cheap-search-domains", {"keywords": self.keywords})
        if structured is None:
            return False

        prices = []
        for domain in structured.get("domains", []):
            print(f"    {domain['name']:<30} {domain['price']}")
            try:
                prices.append(float(domain['price'].lstrip('$').replace(',', '')))
            except ValueError:
                prices.append(float('inf'))
        return prices == sorted(prices)

    def test_recommend_products(self) -> bool:
        structured = self._call("recommend-products", {"keywords": self.keywords, "category": "website"})
        if structured is None:
            return False
        return all(p["category"] == "website" for p in structured.get("products", []))

    def run_all_tests(self) -> bool:
        print(f"\n{'#'*60}")
        print(f"# Domains MCP SSE Smoke Test: {self.base_url}")
        print(f"{'#'*60}")

        if not self.establish_session():
            return False

        tests = [
            ("1. Initialize", self.test_initialize),
            ("2. List Tools", self.test_list_tools),
            ("3. Resources", self.test_resources),
            ("4. Tool: generic-search-domains", self.test_search),
            ("5. Tool: cheap-search-domains", self.test_cheap_search),
            ("6. Tool: recommend-products", self.test_recommend_products),
        ]

        results = []
        for name, test_func in tests:
            try:
                results.append((name, test_func()))
            except Exception as e:
                print(f"\n✗ {name} test failed with exception: {e}")
                results.append((name, False))

        print(f"\n{'='*60}")
        for name, result in results:
            print(f"{'✓ PASS' if result else '✗ FAIL'}: {name}")

        passed = sum(1 for _, result in results if result)
        print(f"\nTotal: {passed}/{len(results)} tests passed")
        return passed == len(results)


def main():
    parser = argparse.ArgumentParser(description="Domains MCP SSE Smoke Test")
    parser.add_argument("--host", default="localhost", help="MCP server host (default: localhost)")
    parser.add_argument("--port", type=int, default=8000, help="MCP server port (default: 8000)")
    parser.add_argument("--keywords", default="artisan bakery", help="Search keywords to use")

    args = parser.parse_args()

    tester = MCPSSETester(args.host, args.port, args.keywords)
    sys.exit(0 if tester.run_all_tests() else 1)


if __name__ == "__main__":
    main()
