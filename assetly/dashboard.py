"""Portfolio dashboard, served at / on the API server.

The page holds no business logic: it connects the browser wallet, calls the
/api routes and renders their JSON. Transactions returned by the API are
signed and sent through ``window.ethereum``.
"""
from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter(tags=["dashboard"])

_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Assetly</title>
  <style>
    :root {
      --bg: #0d0d0d;
      --surface: #161616;
      --border: #2a2a2a;
      --accent: #22c55e;
      --muted: #6b7280;
      --text: #e5e7eb;
      --red: #ef4444;
      --yellow: #eab308;
    }
    * { box-sizing: border-box; margin: 0; padding: 0; }
    body {
      background: var(--bg);
      color: var(--text);
      font-family: 'JetBrains Mono', 'Fira Code', 'Consolas', monospace;
      font-size: 13px;
      line-height: 1.6;
      padding: 24px;
    }
    header {
      display: flex;
      align-items: baseline;
      gap: 16px;
      margin-bottom: 24px;
      border-bottom: 1px solid var(--border);
      padding-bottom: 12px;
    }
    header h1 { font-size: 18px; color: var(--accent); }
    header .subtitle { color: var(--muted); font-size: 12px; }
    #wallet-status { margin-left: auto; color: var(--muted); font-size: 11px; }
    .grid {
      display: grid;
      grid-template-columns: repeat(auto-fill, minmax(180px, 1fr));
      gap: 12px;
      margin-bottom: 24px;
    }
    .card {
      background: var(--surface);
      border: 1px solid var(--border);
      border-radius: 6px;
      padding: 14px 16px;
    }
    .card-label { color: var(--muted); font-size: 11px; text-transform: uppercase; letter-spacing: .05em; }
    .card-value { font-size: 22px; margin-top: 4px; color: var(--accent); }
    .actions { display: flex; gap: 8px; flex-wrap: wrap; margin-bottom: 24px; }
    button, input {
      background: var(--surface);
      color: var(--text);
      border: 1px solid var(--border);
      border-radius: 4px;
      padding: 6px 12px;
      font-family: inherit;
      font-size: 12px;
    }
    button { cursor: pointer; }
    button:hover { border-color: var(--accent); color: var(--accent); }
    button:disabled { opacity: .4; cursor: default; }
    #terminal {
      background: #000;
      border: 1px solid var(--border);
      border-radius: 6px;
      padding: 12px 16px;
      height: 420px;
      overflow-y: auto;
      white-space: pre-wrap;
    }
    .line-info { color: var(--text); }
    .line-ok { color: var(--accent); }
    .line-warn { color: var(--yellow); }
    .line-err { color: var(--red); }
  </style>
</head>
<body>
  <header>
    <h1>Assetly</h1>
    <span class="subtitle">DeFi portfolio agent</span>
    <span id="wallet-status">Wallet not connected</span>
  </header>

  <div class="grid">
    <div class="card"><div class="card-label">Address</div><div class="card-value" id="address">—</div></div>
    <div class="card"><div class="card-label">Balance</div><div class="card-value" id="balance">—</div></div>
    <div class="card"><div class="card-label">Network</div><div class="card-value" id="network">—</div></div>
    <div class="card"><div class="card-label">Portfolio value</div><div class="card-value" id="total">—</div></div>
  </div>

  <div class="actions">
    <button id="connect-btn" onclick="connect()">Connect wallet</button>
    <button onclick="switchToSepolia()">Switch to Sepolia</button>
    <button class="needs-wallet" onclick="analyze(false)" disabled>Analyze</button>
    <button class="needs-wallet" onclick="analyze(true)" disabled>Analyze with AI</button>
    <input id="deposit-amount" placeholder="USDC amount" size="10">
    <button class="needs-wallet" onclick="deposit()" disabled>Deposit to AAVE</button>
    <button class="needs-wallet" onclick="subscribe()" disabled>Subscribe</button>
  </div>

  <div id="terminal"></div>

<script>
  const SEPOLIA = '0xaa36a7';
  let account = null;

  function log(msg, kind = 'info') {
    const term = document.getElementById('terminal');
    const line = document.createElement('div');
    line.className = 'line-' + kind;
    line.textContent = '> ' + msg;
    term.appendChild(line);
    term.scrollTop = term.scrollHeight;
  }

  async function api(path, body) {
    const opts = body === undefined ? {} : {
      method: 'POST',
      headers: { 'Content-Type': 'application/json' },
      body: JSON.stringify(body),
    };
    const resp = await fetch(path, opts);
    const data = await resp.json();
    if (!resp.ok) throw new Error(data.detail || data.error || resp.statusText);
    return data;
  }

  async function connect() {
    if (!window.ethereum) { log('No browser wallet found', 'err'); return; }
    const accounts = await window.ethereum.request({ method: 'eth_requestAccounts' });
    account = accounts[0];
    document.getElementById('address').textContent = account.slice(0, 6) + '…' + account.slice(-4);
    document.getElementById('wallet-status').textContent = 'Connected';
    document.querySelectorAll('.needs-wallet').forEach(b => b.disabled = false);
    log('Connected ' + account, 'ok');
    await refreshWallet();
  }

  async function refreshWallet() {
    try {
      const w = await api('/api/wallet/' + account);
      document.getElementById('balance').textContent = w.balance_eth + ' ETH';
      document.getElementById('network').textContent = w.network ? w.network.chainName : w.chain_id;
      if (w.subscribed) log('Subscription active', 'ok');
    } catch (err) { log('Wallet lookup failed: ' + err.message, 'err'); }
  }

  async function switchToSepolia() {
    const networks = await api('/api/networks');
    const sepolia = networks['Ethereum Sepolia'];
    try {
      await window.ethereum.request({ method: 'wallet_switchEthereumChain', params: [{ chainId: SEPOLIA }] });
    } catch (err) {
      if (err.code !== 4902) { log('Network switch failed: ' + err.message, 'err'); return; }
      await window.ethereum.request({ method: 'wallet_addEthereumChain', params: [sepolia] });
    }
    log('Switched to Sepolia', 'ok');
    if (account) await refreshWallet();
  }

  async function analyze(withLlm) {
    log('Analyzing portfolio…');
    try {
      const a = await api('/api/agent-analysis', { address: account, includeLlm: withLlm });
      document.getElementById('total').textContent = '$' + a.valuation.total_value_usd.toFixed(2);
      for (const p of a.valuation.positions) {
        log(`${p.symbol.padEnd(8)} ${p.quantity.toFixed(4).padStart(14)}  $${p.value_usd.toFixed(2)}`);
      }
      log('Risk score: ' + a.valuation.risk_score + '/10');
      const news = a.market_news_analysis;
      if (news) {
        log(`Market: ${news.general_market.sentiment} (signal ${news.general_market.signal})`);
        for (const [sym, t] of Object.entries(news.portfolio_tokens)) {
          log(`${sym}: ${t.recommendation} (${t.score}) ${t.headline}`);
        }
      }
      if (a.strategy) {
        for (const r of a.strategy.rebalancing) {
          log(`${r.action} ${r.asset}: ${r.current_allocation}% → ${r.target_allocation}%`, 'ok');
        }
        for (const m of a.strategy.risk_mitigation) log(`[${m.priority}] ${m.action}`, 'warn');
      }
      for (const e of a.errors) log('Degraded: ' + e, 'warn');
    } catch (err) { log('Analysis failed: ' + err.message, 'err'); }
  }

  async function sendAll(txs) {
    for (const tx of txs) {
      const hash = await window.ethereum.request({ method: 'eth_sendTransaction', params: [tx] });
      log('Sent ' + hash, 'ok');
    }
  }

  async function deposit() {
    const amount = document.getElementById('deposit-amount').value;
    try {
      const d = await api('/api/deposit-to-aave', { address: account, amount, symbol: 'USDC', chainId: SEPOLIA });
      log(`Depositing ${amount} USDC (${d.steps.length} transactions)…`);
      await sendAll(d.steps.map(s => ({ from: account, to: s.to, data: s.data, value: s.value || '0x0' })));
      log('Deposit submitted', 'ok');
    } catch (err) { log('Deposit failed: ' + err.message, 'err'); }
  }

  async function subscribe() {
    try {
      const s = await api('/api/subscribe', { address: account });
      await sendAll([s.transaction]);
      log('Subscription payment sent', 'ok');
    } catch (err) { log('Subscription failed: ' + err.message, 'err'); }
  }
</script>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse)
async def dashboard() -> HTMLResponse:
    """Serve the portfolio dashboard UI."""
    return HTMLResponse(content=_HTML)
