"""Self-contained HTML page for the dashboard window.

The whole front-end lives in the ``DASHBOARD_HTML`` constant so the app
can serve it as one response with no static files or build step. The
page only talks to ``POST /api/v1/refresh``; keys and other remote
strings are rendered via ``textContent``.
"""

DASHBOARD_HTML = r"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>MemeDash</title>
<style>
:root {
  --bg: #111827;
  --panel: #1f2937;
  --fg: #f9fafb;
  --muted: #9ca3af;
  --error: #991b1b;
  --accent: #2563eb;
  --line: #60a5fa;
}
* { margin: 0; padding: 0; box-sizing: border-box; }
body {
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
  background: var(--bg);
  color: var(--fg);
  padding: 1.5rem;
}
.panel { background: var(--panel); border-radius: 8px; padding: 1.25rem; margin-top: 1.5rem; }
.panel.error { background: var(--error); text-align: center; font-size: 1.2rem; }
.loading { color: var(--muted); text-align: center; font-size: 1.2rem; }
.spinner { width: 2rem; height: 2rem; margin: 0 auto 0.75rem; border: 3px solid var(--muted); border-top-color: transparent; border-radius: 50%; animation: spin 1s linear infinite; }
@keyframes spin { to { transform: rotate(360deg); } }
.header { display: flex; align-items: center; justify-content: space-between; }
.header h1 { font-size: 2.2rem; }
.header button {
  background: var(--accent); color: var(--fg); border: none; border-radius: 8px;
  padding: 0.5rem 0.9rem; font-size: 1.1rem; cursor: pointer;
}
.cards { display: grid; grid-template-columns: repeat(6, 1fr); gap: 1rem; margin-top: 1.5rem; }
@media (max-width: 900px) { .cards { grid-template-columns: repeat(2, 1fr); } }
.card { background: var(--panel); border-radius: 8px; padding: 1rem; }
.card h2 { font-size: 1rem; color: var(--muted); margin-bottom: 0.5rem; }
.card p { font-size: 1.8rem; font-weight: bold; }
.chart h2 { color: var(--muted); font-size: 1.2rem; margin-bottom: 1rem; }
.chart svg { width: 100%; height: 300px; }
.chart text { fill: var(--muted); font-size: 11px; }
.grid { display: grid; grid-template-columns: repeat(4, 1fr); gap: 1rem; margin-top: 1.5rem; }
@media (max-width: 900px) { .grid { grid-template-columns: repeat(2, 1fr); } }
.tile { position: relative; cursor: pointer; aspect-ratio: 1; background: var(--panel); border-radius: 8px; overflow: hidden; }
.tile img, .tile video { width: 100%; height: 100%; object-fit: contain; }
.tile .date { position: absolute; bottom: 0; left: 0; right: 0; background: rgba(0,0,0,0.5); padding: 0.4rem; font-size: 0.75rem; }
.modal { position: fixed; inset: 0; background: rgba(0,0,0,0.75); display: none; align-items: center; justify-content: center; z-index: 50; }
.modal.open { display: flex; }
.modal .body { position: relative; max-width: 95vw; max-height: 95vh; }
.modal img, .modal video { max-width: 95vw; max-height: 90vh; }
.modal .close { position: absolute; top: 0.5rem; right: 0.75rem; font-size: 2rem; color: var(--fg); background: none; border: none; cursor: pointer; }
</style>
</head>
<body>
<div class="panel header">
  <button id="refresh" title="Refresh Metrics and Images">&#x21bb;</button>
  <h1>MemeDash</h1>
  <div style="width:2rem"></div>
</div>

<div id="metrics"><div class="panel loading">Loading Metrics...</div></div>
<div id="history"><div class="panel loading">Loading Meme History...</div></div>
<div id="media"><div class="panel loading">Loading Images...</div></div>

<div class="modal" id="modal">
  <div class="body" id="modal-body">
    <button class="close" id="modal-close">&times;</button>
    <div id="modal-content"></div>
  </div>
</div>

<script>
const COLORS = {
  blue: '#60a5fa', green: '#4ade80', violet: '#a78bfa', purple: '#c084fc',
  yellow: '#facc15', red: '#f87171', indigo: '#818cf8', orange: '#fb923c',
  teal: '#2dd4bf', cyan: '#22d3ee', emerald: '#34d399', pink: '#f472b6',
  white: '#ffffff'
};

let pendingOperation = null;

function el(tag, className, text) {
  const node = document.createElement(tag);
  if (className) node.className = className;
  if (text !== undefined) node.textContent = text;
  return node;
}

function showError(target, message) {
  target.replaceChildren(el('div', 'panel error', message));
}

function showLoading(target, message) {
  const panel = el('div', 'panel loading');
  panel.appendChild(el('div', 'spinner'));
  panel.appendChild(el('p', 'loading', message));
  target.replaceChildren(panel);
}

function renderMetrics(panel) {
  const target = document.getElementById('metrics');
  if (panel.status !== 'ok') return showError(target, panel.error);
  const grid = el('div', 'cards');
  for (const card of panel.data.cards) {
    const node = el('div', 'card');
    node.appendChild(el('h2', '', card.title));
    const value = el('p', '', card.value);
    value.style.color = COLORS[card.color] || COLORS.white;
    node.appendChild(value);
    grid.appendChild(node);
  }
  target.replaceChildren(grid);
}

function renderHistory(panel) {
  const target = document.getElementById('history');
  if (panel.status !== 'ok') return showError(target, panel.error);
  const wrap = el('div', 'panel chart');
  wrap.appendChild(el('h2', '', 'Meme Count History (30 Days)'));
  const points = panel.data;
  if (!points.length) {
    wrap.appendChild(el('p', 'loading', 'No data available.'));
    return target.replaceChildren(wrap);
  }
  const ns = 'http://www.w3.org/2000/svg';
  const svg = document.createElementNS(ns, 'svg');
  const w = 1000, h = 300, pad = 40;
  svg.setAttribute('viewBox', `0 0 ${w} ${h}`);
  svg.setAttribute('preserveAspectRatio', 'none');
  const counts = points.map(p => p.count);
  const max = Math.max(...counts), min = Math.min(...counts);
  const span = max - min || 1;
  const x = i => pad + (points.length === 1 ? (w - 2 * pad) / 2 : i * (w - 2 * pad) / (points.length - 1));
  const y = c => h - pad - (c - min) * (h - 2 * pad) / span;
  const line = document.createElementNS(ns, 'polyline');
  line.setAttribute('points', points.map((p, i) => `${x(i)},${y(p.count)}`).join(' '));
  line.setAttribute('fill', 'none');
  line.setAttribute('stroke', 'var(--line)');
  line.setAttribute('stroke-width', '2');
  svg.appendChild(line);
  points.forEach((p, i) => {
    const dot = document.createElementNS(ns, 'circle');
    dot.setAttribute('cx', x(i));
    dot.setAttribute('cy', y(p.count));
    dot.setAttribute('r', 4);
    dot.setAttribute('fill', 'var(--line)');
    const tip = document.createElementNS(ns, 'title');
    tip.textContent = `${p.date}: ${p.count}`;
    dot.appendChild(tip);
    svg.appendChild(dot);
    const label = document.createElementNS(ns, 'text');
    label.setAttribute('x', x(i));
    label.setAttribute('y', h - 10);
    label.setAttribute('text-anchor', 'middle');
    label.textContent = new Date(p.date + 'T00:00:00Z').toLocaleDateString();
    svg.appendChild(label);
  });
  wrap.appendChild(svg);
  target.replaceChildren(wrap);
}

function mediaNode(item, fullscreen) {
  if (item.is_video) {
    const video = el('video');
    video.src = item.url;
    video.controls = true;
    video.preload = 'metadata';
    if (fullscreen) video.autoplay = true;
    return video;
  }
  const img = el('img');
  img.src = item.url;
  img.alt = fullscreen ? '' : item.key;
  return img;
}

function openViewer(item) {
  document.getElementById('modal-content').replaceChildren(mediaNode(item, true));
  document.getElementById('modal').classList.add('open');
}

function closeViewer() {
  document.getElementById('modal').classList.remove('open');
  document.getElementById('modal-content').replaceChildren();
}

function renderMedia(panel) {
  const target = document.getElementById('media');
  if (panel.status !== 'ok') return showError(target, panel.error);
  const grid = el('div', 'grid');
  for (const item of panel.data) {
    const tile = el('div', 'tile');
    tile.appendChild(mediaNode(item, false));
    tile.appendChild(el('div', 'date', new Date(item.last_modified).toLocaleDateString()));
    tile.addEventListener('click', () => openViewer(item));
    grid.appendChild(tile);
  }
  target.replaceChildren(grid);
}

async function refresh() {
  const operationId = crypto.randomUUID();
  pendingOperation = operationId;
  showLoading(document.getElementById('metrics'), 'Loading Metrics...');
  showLoading(document.getElementById('history'), 'Loading Meme History...');
  showLoading(document.getElementById('media'), 'Loading Images...');
  try {
    const response = await fetch('/api/v1/refresh', {
      method: 'POST',
      headers: {'Content-Type': 'application/json'},
      body: JSON.stringify({operation_id: operationId})
    });
    const state = await response.json();
    if (state.operation_id !== pendingOperation) return;
    renderMetrics(state.metrics);
    renderHistory(state.history);
    renderMedia(state.media);
  } catch (err) {
    if (operationId !== pendingOperation) return;
    showError(document.getElementById('metrics'), 'Failed to load metrics.');
    showError(document.getElementById('history'), 'Failed to load meme history.');
    showError(document.getElementById('media'), 'Failed to fetch images.');
  }
}

document.getElementById('refresh').addEventListener('click', refresh);
document.getElementById('modal').addEventListener('click', closeViewer);
document.getElementById('modal-close').addEventListener('click', closeViewer);
document.getElementById('modal-body').addEventListener('click', e => e.stopPropagation());
refresh();
</script>
</body>
</html>
"""
