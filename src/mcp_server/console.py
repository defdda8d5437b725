"""Static diagnostic page served at ``GET /``."""

CONSOLE_HTML = """<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>DataForSEO MCP - Quick Tester</title>
  <style>
    body { font-family: system-ui, sans-serif; margin: 24px; color: #111827; }
    .row { display: flex; gap: 12px; margin-bottom: 12px; flex-wrap: wrap; }
    input, button { font: inherit; padding: 8px 10px; border: 1px solid #d1d5db; border-radius: 6px; }
    button { background: #111827; color: white; cursor: pointer; }
    #out { white-space: pre-wrap; background: #0b1020; color: #e5e7eb; padding: 12px; border-radius: 8px; min-height: 160px; }
  </style>
  <script>
    async function sendRpc(method, params) {
      const res = await fetch(location.origin + '/mcp', {
        method: 'POST',
        headers: {'Accept': 'application/json, text/event-stream', 'Content-Type': 'application/json'},
        body: JSON.stringify({jsonrpc: '2.0', id: String(Date.now()), method, params})
      });
      const text = await res.text();
      let shown = text;
      try {
        shown = JSON.stringify(JSON.parse(text), null, 2);
      } catch (_) {
        const data = text.split('\\n').filter(l => l.startsWith('data: ')).map(l => l.slice(6));
        if (data.length) { shown = JSON.stringify(JSON.parse(data[data.length - 1]), null, 2); }
      }
      document.getElementById('out').textContent = shown;
    }
    function value(id, fallback) { return document.getElementById(id).value || fallback; }
    addEventListener('DOMContentLoaded', () => {
      document.getElementById('btnInit').onclick = () =>
        sendRpc('initialize', {protocolVersion: '2025-03-26', capabilities: {}});
      document.getElementById('btnList').onclick = () => sendRpc('tools/list', {});
      document.getElementById('btnSerp').onclick = () =>
        sendRpc('tools/call', {name: 'serp_organic_live_advanced',
          arguments: {keyword: value('kw', 'espresso machine'), location_name: value('loc', 'United States'),
                      language_code: value('lang', 'en')}});
      document.getElementById('btnVolume').onclick = () =>
        sendRpc('tools/call', {name: 'keywords_data_google_ads_search_volume',
          arguments: {keywords: [value('kw', 'espresso machine')], location_name: value('loc', 'United States'),
                      language_code: value('lang', 'en')}});
    });
  </script>
</head>
<body>
  <h1>DataForSEO MCP - Quick Tester</h1>
  <div class="row"><button id="btnInit">Initialize</button><button id="btnList">List Tools</button></div>
  <div class="row">
    <input id="kw" value="espresso machine" />
    <input id="loc" value="United States" />
    <input id="lang" value="en" />
  </div>
  <div class="row">
    <button id="btnSerp">Run SERP: Organic Live Advanced</button>
    <button id="btnVolume">Run Keywords: Google Ads Search Volume</button>
  </div>
  <p>Credentials come from the server configuration; the browser sends none.</p>
  <pre id="out"></pre>
</body>
</html>
"""
