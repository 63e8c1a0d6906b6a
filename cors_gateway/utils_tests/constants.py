TEST_UPSTREAM_HOST = "analytics.test"
VISUALIZER_HTML = b"<!doctype html><html><body><h1>Visualizer</h1></body></html>"
