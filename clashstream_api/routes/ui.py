from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from ..config import APP_NAME

router = APIRouter(tags=["ui"])


# ---------------- UI: search + player ----------------
@router.get("/", response_class=HTMLResponse)
def player():
    # NOTE: f-string below; every JS/CSS brace is doubled {{ }}
    html = f"""<!doctype html>
<html>
<head>
<meta charset="utf-8"/>
<meta name="viewport" content="width=device-width, initial-scale=1"/>
<title>{APP_NAME}</title>
<style>
  body{{font-family:system-ui,Segoe UI,Roboto,Arial;margin:0}}
  .playerbar{{position:sticky;top:0;z-index:10;background:#fff;border-bottom:1px solid #eee;padding:12px}}
  .row{{display:flex;gap:12px;align-items:center;flex-wrap:wrap}}
  .btn{{padding:6px 10px;border-radius:6px;border:1px solid #ddd;background:#fafafa;cursor:pointer}}
  .btn:hover{{filter:brightness(1.03)}}
  input[type=text]{{flex:1;min-width:200px;padding:6px 10px;border:1px solid #ddd;border-radius:6px}}
  table{{width:100%;border-collapse:collapse;margin-top:12px}}
  th,td{{border-bottom:1px solid #eee;padding:8px;text-align:left;vertical-align:middle}}
  thead th{{background:#fafafa}}
  img.thumb{{width:80px;height:auto;border-radius:4px}}
  main{{padding:16px 24px 40px}}
</style>
</head>
<body>

<div class="playerbar">
  <form class="row" onsubmit="runSearch(event)">
    <strong>{APP_NAME}</strong>
    <input type="text" id="q" placeholder="Search tracks..." autocomplete="off"/>
    <button class="btn" type="submit">Search</button>
  </form>
  <div class="row" style="margin-top:8px">
    <audio id="player" controls preload="none" style="width:100%"></audio>
  </div>
  <div style="margin-top:6px"><b>Now Playing:</b> <span id="now">—</span></div>
</div>

<main>
  <table>
    <thead><tr><th></th><th>Title</th><th>Channel</th><th>Length</th><th>Action</th></tr></thead>
    <tbody><tr><td colspan="5">Search for something to play.</td></tr></tbody>
  </table>
</main>

<script>
function esc(s) {{
  return String(s ?? "").replace(/[&<>"']/g, c => ({{"&":"&amp;","<":"&lt;",">":"&gt;","\\"":"&quot;","'":"&#39;"}}[c]));
}}
function fmtTime(secs) {{
  secs = Math.round(Number(secs) || 0);
  return Math.floor(secs / 60) + ":" + String(secs % 60).padStart(2, "0");
}}

async function runSearch(ev) {{
  ev.preventDefault();
  const q = document.getElementById('q').value.trim();
  if (!q) return;
  const tbody = document.querySelector('tbody');
  tbody.innerHTML = "<tr><td colspan='5'>Searching…</td></tr>";
  try {{
    const res = await fetch("/search-list?query=" + encodeURIComponent(q) + "&count=10");
    const data = await res.json();
    if (!res.ok) throw new Error(data.error || res.statusText);
    tbody.innerHTML = data.tracks.map(t =>
      "<tr>" +
        "<td>" + (t.thumbnail ? "<img class='thumb' src='" + esc(t.thumbnail) + "'>" : "") + "</td>" +
        "<td>" + esc(t.title) + "</td>" +
        "<td>" + esc(t.channel) + "</td>" +
        "<td>" + fmtTime(t.duration) + "</td>" +
        "<td><button class='btn' data-id='" + esc(t.id) + "' onclick='playId(this.dataset.id)'>Play</button></td>" +
      "</tr>"
    ).join('') || "<tr><td colspan='5'>No results.</td></tr>";
  }} catch (e) {{
    tbody.innerHTML = "<tr><td colspan='5'>Search failed: " + esc(e?.message || e) + "</td></tr>";
  }}
}}

async function playId(videoId) {{
  const now = document.getElementById('now');
  now.innerText = "loading…";
  try {{
    const res = await fetch("/play/" + encodeURIComponent(videoId));
    const t = await res.json();
    if (!res.ok) throw new Error(t.error || res.statusText);
    const audio = document.getElementById('player');
    audio.src = t.audioUrl;
    audio.play().catch(()=>{{}});
    now.innerText = t.title + " — " + t.channel;
  }} catch (e) {{
    now.innerText = "error: " + (e?.message || e);
  }}
}}
</script>
</body>
</html>"""
    return HTMLResponse(html, status_code=200)
