"""Stand-in for ``json2ts`` used by the test-suite.

Reads a JSON schema on stdin and prints one member per top-level property of
an ``export interface`` named after the schema title, preceded by the flags
it received.  ``--fail`` exits 3, ``--empty`` prints nothing and ``--hang``
sleeps past any sensible timeout.
"""

import json
import sys
import time

args = sys.argv[1:]

if "--hang" in args:
    time.sleep(30)
if "--fail" in args:
    sys.stderr.write("error: schema rejected\n")
    sys.exit(3)
if "--empty" in args:
    sys.exit(0)

schema = json.load(sys.stdin)
print(f"// flags: {' '.join(args)}")
print(f"export interface {schema['title']} {{")
for key in schema.get("properties", {}):
    print(f"  {json.dumps(key)}: unknown;")
print("}")
