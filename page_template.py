"""Dishdash web UI HTML template (skyplane, live fields, log view, controls)."""

__all__ = ["HTML_PAGE"]

HTML_PAGE = """
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Dishdash</title>
  <meta name="description" content="Dishdash: live dashboard for a satellite dish rotator">
  <meta name="viewport" content="width=device-width, initial-scale=1, viewport-fit=cover">
  <script src="https://cdn.socket.io/4.7.2/socket.io.min.js"></script>

  <style>
    :root {
      --gap: 14px;
      --card-pad: 12px;
      --radius: 12px;
      --border: #d0d7de;
      --fg: #1f2328;
      --muted: #57606a;
      --btn-h: 40px;
      --btn-font: 15px;

      --primary: #0ea5e9;   --primary-fg: #fff;
      --neutral: #e5e7eb;   --neutral-fg: #111827;
      --warning: #ffc107;   --warning-fg: #111827;
      --resume:  #28a745;   --resume-fg:  #fff;
      --danger:  #ef4444;   --danger-fg:  #fff;
    }

    * { box-sizing: border-box; }
    body { margin: 0; font-family: system-ui,-apple-system,Segoe UI,Roboto,sans-serif; color: var(--fg); background: #fafbfc; }
    .wrap { display: grid; gap: var(--gap); padding: var(--gap); max-width: 1280px; margin: 0 auto; }
    .title { font-size: 28px; font-weight: 800; }
    .muted { color: var(--muted); }
    .status-line { display: flex; flex-wrap: wrap; gap: 10px 16px; align-items: baseline; }

    .grid { display: grid; grid-template-columns: auto 1fr; gap: var(--gap); align-items: start; }
    @media (max-width: 1000px) { .grid { grid-template-columns: 1fr; } }
    .card { background: #fff; border: 1px solid var(--border); border-radius: var(--radius); padding: var(--card-pad); display: grid; gap: 10px; }
    .row { display: flex; flex-wrap: wrap; gap: 8px; align-items: center; }

    .btn { cursor: pointer; height: var(--btn-h); border: 1px solid var(--border); background: #fff; border-radius: 10px; font-size: var(--btn-font); padding: 0 12px; }
    .btn-primary { background: var(--primary); color: var(--primary-fg); border-color: var(--primary); }
    .btn-neutral { background: var(--neutral); color: var(--neutral-fg); }
    .btn-danger  { background: var(--danger);  color: var(--danger-fg); border-color: var(--danger); }
    input[type=number] { width: 110px; padding: 8px 10px; border: 1px solid var(--border); border-radius: 8px; font-size: 15px; }

    .fields { width: 100%; border-collapse: collapse; }
    .fields td { border: 1px solid var(--border); padding: 4px 8px; font-size: 13px; }
    .fields td:first-child { background: #f3f4f6; font-family: ui-monospace, Menlo, Consolas, monospace; }

    .bars { display: inline-flex; gap: 2px; align-items: flex-end; height: 18px; }
    .bars span { width: 5px; background: #d1d5db; }
    .bars span.active { background: #16a34a; }
    #bar1 { height: 25%; } #bar2 { height: 50%; } #bar3 { height: 75%; } #bar4 { height: 100%; }

    #errorMessages { width: 100%; height: 260px; font-family: ui-monospace, Menlo, Consolas, monospace; font-size: 12px; border: 1px solid var(--border); border-radius: 8px; padding: 8px; }
    #errorMessages.has-errors { background: #fff7ed; border-color: #f59e0b; }
    #alert { display: none; padding: 8px 12px; border-radius: 8px; background: #fee2e2; border: 1px solid var(--danger); }
    .error { color: var(--danger); font-size: 12px; }
  </style>
</head>
<body>
  <div class="wrap">
    <header class="status-line">
      <div class="title">Dishdash</div>
      <div><strong>AZ</strong> <span id="az">-</span>&deg; &rarr; <span id="sp-az">-</span>&deg;</div>
      <div><strong>EL</strong> <span id="el">-</span>&deg; &rarr; <span id="sp-el">-</span>&deg;</div>
      <div class="muted"><strong>Wi-Fi</strong> <span class="bars"><span id="bar1"></span><span id="bar2"></span><span id="bar3"></span><span id="bar4"></span></span></div>
      <div class="muted"><strong>Debug</strong> <span id="currentDebugLevel">-</span></div>
      <div class="muted"><strong>Last</strong> <span id="msg" aria-live="polite"></span></div>
    </header>

    <div id="alert" role="alert"></div>

    <div class="grid">
      <div class="card">
        <div id="skyplane" aria-label="Skyplane">{{skyplane}}</div>
        <div class="muted">Red: current position. Blue ring: setpoint. Triangle: wind from.</div>
      </div>

      <div class="card">
        <form id="az-el-form" class="row" autocomplete="off">
          <label>AZ <input id="new_setpoint_az" name="azimuth" type="number" step="0.01"></label>
          <label>EL <input id="new_setpoint_el" name="elevation" type="number" step="0.01"></label>
          <button type="submit" class="btn btn-primary">Set</button>
          <button type="button" class="btn btn-neutral" onclick="postAction('home')">Home</button>
          <span id="error_message" class="error"></span>
        </form>

        <div class="row">
          <label><input type="checkbox" id="toggleCal" onchange="toggle('cal', this.checked)"> Cal mode</label>
          <input id="move_value" type="number" step="0.1" value="1">
          <button type="button" class="btn" onclick="postAction('move_az', {value: moveValue()})">Move AZ</button>
          <button type="button" class="btn" onclick="postAction('move_el', {value: moveValue()})">Move EL</button>
          <button type="button" class="btn" onclick="postAction('cal_el')">Cal EL</button>
        </div>

        <div class="row">
          <label><input type="checkbox" onchange="toggle('single_motor', this.checked)"> Single motor</label>
          <label><input type="checkbox" onchange="toggle('wind_safety', this.checked)"> Wind safety</label>
          <label><input type="checkbox" onchange="toggle('wind_home', this.checked)"> Wind-based home</label>
          <label><input type="checkbox" onchange="toggle('weather', this.checked)"> Weather</label>
          <label><input type="checkbox" onchange="toggle('stellarium', this.checked)"> Stellarium</label>
          <label><input type="checkbox" id="disableSerialOutput" onchange="postAction('serial_output', {disabled: this.checked})"> Serial output off</label>
          <button type="button" class="btn" onclick="postAction('force_weather')">Update weather</button>
        </div>

        <div class="row">
          <label>Debug level
            <select id="debugLevel" onchange="postAction('debug_level', {level: this.value})">
              <option value="0">NONE</option><option value="1">ERROR</option><option value="2">WARN</option>
              <option value="3">INFO</option><option value="4">DEBUG</option><option value="5">VERBOSE</option>
            </select>
          </label>
          <button type="button" class="btn btn-danger" onclick="confirmAction('restart', 'Are you sure you want to restart the rotator?\\n\\nThis will interrupt any ongoing operations.')">Restart</button>
          <button type="button" class="btn btn-danger" onclick="confirmAction('reset_unwind', 'Are you sure you want to reset the Needs Unwind flag?\\n\\nThis could cause the rotator to over rotate and tangle cables.')">Reset unwind</button>
          <button type="button" class="btn btn-danger" onclick="confirmAction('reset_eeprom', 'WARNING: this erases all saved settings on the device. Continue?')">Reset EEPROM</button>
        </div>

        <div class="row">
          <strong>Log</strong>
          <button type="button" class="btn" id="pauseScrollBtn" onclick="toggleLogPause()">Pause</button>
          <button type="button" class="btn btn-neutral" onclick="socket.emit('log_clear')">Clear</button>
        </div>
        <textarea id="errorMessages" readonly></textarea>
      </div>
    </div>

    <div class="card">
      <details>
        <summary><strong>All telemetry</strong></summary>
        <table class="fields"><tbody id="fields-body"></tbody></table>
      </details>
    </div>
  </div>

  <script id="fields-data" type="application/json">{{fields_json}}</script>

  <script>
  const FIELDS = JSON.parse(document.getElementById('fields-data').textContent || "[]");
  const socket = io();
  let logPaused = false;
  let logLines = [];

  function buildFieldTable() {
    const body = document.getElementById('fields-body');
    FIELDS.forEach(name => {
      const tr = document.createElement('tr');
      const k = document.createElement('td'); k.textContent = name;
      const v = document.createElement('td'); v.id = 'f-' + name; v.textContent = '-';
      tr.appendChild(k); tr.appendChild(v); body.appendChild(tr);
    });
  }

  async function postAction(name, extra) {
    const fd = new FormData();
    fd.append('action', name);
    Object.entries(extra || {}).forEach(([k, v]) => fd.append(k, v));
    try {
      const resp = await fetch('/', { method: 'POST', body: fd, credentials: 'same-origin' });
      const data = await resp.json();
      if (data.msg) document.getElementById('msg').textContent = data.msg;
    } catch (err) { console.error('POST failed', err); }
  }

  function toggle(name, on) { postAction(name + (on ? '_on' : '_off')); }
  function moveValue() { return document.getElementById('move_value').value; }
  function confirmAction(name, text) { if (confirm(text)) postAction(name); }

  function toggleLogPause() { socket.emit('log_pause', { paused: !logPaused }); }
  function showLogState(paused) {
    logPaused = paused;
    const btn = document.getElementById('pauseScrollBtn');
    btn.textContent = paused ? 'Resume' : 'Pause';
    btn.style.backgroundColor = paused ? 'var(--resume)' : 'var(--warning)';
    btn.style.color = paused ? 'var(--resume-fg)' : 'var(--warning-fg)';
  }

  document.getElementById('az-el-form').addEventListener('submit', (e) => {
    e.preventDefault();
    const az = parseFloat(document.getElementById('new_setpoint_az').value);
    const el = parseFloat(document.getElementById('new_setpoint_el').value);
    const err = document.getElementById('error_message');
    if (isNaN(az) || az < -360 || az > 360) { err.textContent = 'Azimuth must be between -360 and 360.'; return; }
    if (isNaN(el) || el < 0 || el > 90) { err.textContent = 'Elevation must be between 0 and 90.'; return; }
    err.textContent = '';
    postAction('set', { azimuth: az.toFixed(2), elevation: el.toFixed(2) });
  });

  socket.on('telemetry', (data) => {
    const f = data.fields || {};
    Object.entries(f).forEach(([name, value]) => {
      const cell = document.getElementById('f-' + name);
      if (cell) cell.textContent = (value === null || value === undefined) ? '-' : value;
    });
    document.getElementById('az').textContent = f.correctedAngle_az ?? '-';
    document.getElementById('el').textContent = f.correctedAngle_el ?? '-';
    document.getElementById('sp-az').textContent = f.setpoint_az ?? '-';
    document.getElementById('sp-el').textContent = f.setpoint_el ?? '-';
    for (let i = 1; i <= 4; i++) {
      document.getElementById('bar' + i).classList.toggle('active', data.level >= i);
    }
    if (data.debug_level_text) {
      document.getElementById('currentDebugLevel').textContent = data.debug_level_text;
      document.getElementById('debugLevel').value = data.debug_level;
    }
    if ('serial_output_disabled' in data) {
      document.getElementById('disableSerialOutput').checked = !!data.serial_output_disabled;
    }
    if (data.skyplane) document.getElementById('skyplane').innerHTML = data.skyplane;
  });

  socket.on('log', (data) => {
    const area = document.getElementById('errorMessages');
    if ('lines' in data) {
      if (data.reset) {
        logLines = data.lines.slice();
      } else {
        if (data.evicted) logLines.splice(0, data.evicted);
        for (const line of data.lines) logLines.push(line);
      }
      area.value = logLines.join('\\n');
      area.className = data.has_content ? 'has-errors' : '';
    }
    if (data.scroll === 'end') area.scrollTop = area.scrollHeight;
  });

  socket.on('log_state', (data) => showLogState(!!data.paused));

  socket.on('alert', (data) => {
    const box = document.getElementById('alert');
    box.textContent = data.msg;
    box.style.display = 'block';
    setTimeout(() => { box.style.display = 'none'; }, 8000);
  });

  socket.on('command', (data) => {
    if (!data.ok) console.error('Command failed', data);
  });

  document.addEventListener('DOMContentLoaded', () => { buildFieldTable(); showLogState(false); });
  </script>
</body>
</html>
"""
