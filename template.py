from __future__ import annotations

import json
from html import escape
from typing import Any, Mapping

from forms import FormLayout

HTML_TEMPLATE = """<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{TITLE}</title>
<meta name="viewport" content="width=device-width, initial-scale=1">
<style>
  :root{--bg:#f3f6f9;--paper:#fff;--ink:#0b0f17;--muted:#6b7280;--line:#e5e7eb;--accent:#0e7490;--bad:#b91c1c}
  html,body{margin:0;padding:0;background:var(--bg);color:var(--ink);font:14px/1.4 system-ui,-apple-system,Segoe UI,Roboto,Arial,sans-serif}
  .container{max-width:1100px;margin:0 auto;padding:16px}
  header.bar{display:flex;align-items:center;justify-content:space-between;gap:12px;margin-bottom:12px}
  h1{font-size:20px;margin:0;color:var(--accent)}
  nav a{margin-right:10px;color:var(--accent)}
  nav a.active{font-weight:600;text-decoration:none}
  .btn{border:1px solid var(--line);background:#f8fafc;color:#111827;border-radius:6px;padding:6px 10px;cursor:pointer}
  .btn.primary{background:var(--accent);color:#fff;border-color:var(--accent)}
  .banner{display:flex;align-items:center;gap:12px}
  .banner .amount{font-size:20px;font-weight:700;color:var(--accent)}
  .paper{background:var(--paper);border-radius:10px;box-shadow:0 4px 18px rgba(0,0,0,.08);padding:20px}
  .company{text-align:center;margin-bottom:8px}
  .company input{text-align:center}
  .meta{display:flex;gap:16px;margin:12px 0}
  .meta fieldset{flex:1;border:1px solid var(--line);border-radius:6px;padding:6px 10px}
  .meta legend{font-size:11px;font-weight:700;color:#374151}
  input.plain{width:100%;box-sizing:border-box;border:0;padding:4px;background:transparent;font:inherit;color:inherit;outline:none}
  table{width:100%;border-collapse:collapse}
  thead th{background:var(--accent);color:#fff;padding:6px;text-align:left;font-size:12px}
  thead th.num{text-align:right}
  tbody td{border-bottom:1px solid var(--line);padding:0}
  td.cell{padding:6px}
  input.cell-input{width:100%;box-sizing:border-box;border:0;padding:6px;background:transparent;font:inherit;color:inherit;outline:none}
  input.cell-input[type="number"],td.num{text-align:right}
  input.cell-input:focus{background:#ecfeff;box-shadow:inset 0 0 0 2px #67e8f9}
  .totals{margin-top:10px;border:1px solid var(--line);border-radius:8px;overflow:hidden}
  .totals .row{display:flex;justify-content:space-between;padding:6px 12px;border-bottom:1px solid var(--line)}
  .totals .row:last-child{border-bottom:0}
  .strong{font-weight:600}
  .words{margin-top:8px;font-style:italic}
  .terms textarea{width:100%;box-sizing:border-box;border:1px solid var(--line);border-radius:6px;font:inherit;padding:6px;margin-top:10px}
  .footnote{color:var(--muted);font-size:11px;margin-top:8px}
  @media print{
    @page{margin:10mm;size:A4 portrait}
    body{background:#fff;-webkit-print-color-adjust:exact;print-color-adjust:exact}
    .no-print{display:none !important}
    .paper{box-shadow:none;padding:0}
    input,textarea{border:none !important;background:transparent !important;box-shadow:none !important}
    table{page-break-inside:avoid;font-size:10px}
  }
</style>
</head>
<body>
<div class="container">
  <header class="bar no-print">
    <div>
      <h1>{TITLE}</h1>
      <nav id="formNav"></nav>
    </div>
    <div class="banner">
      <div><div class="footnote">Total Amount</div><div class="amount" id="bannerTotal">-</div></div>
      <button class="btn" id="addBtn" title="Add a blank row">Add Item</button>
      <button class="btn" id="resetBtn" title="Start a new invoice">Reset</button>
      <a class="btn" id="exportBtn" title="Export CSV">Export</a>
      <button class="btn primary" id="printBtn">Print</button>
    </div>
  </header>

  <section class="paper">
    <div class="company">
      <input class="plain strong" data-header="company_name" placeholder="Company Name">
      <input class="plain" data-header="company_address" placeholder="Company Address">
      <input class="plain" data-header="company_phone" placeholder="Company Phone">
      <input class="plain" data-header="company_email" placeholder="Company Email">
    </div>
    <div class="meta">
      <fieldset><legend>BILL TO</legend>
        <input class="plain strong" data-header="customer_name" placeholder="Customer name">
        <input class="plain" data-header="phone" placeholder="Phone">
      </fieldset>
      <fieldset><legend>SALESMAN</legend>
        <input class="plain" data-header="salesman_name" placeholder="Salesman name">
      </fieldset>
      <fieldset><legend>DATE</legend>
        <input class="plain" type="date" data-header="date">
      </fieldset>
    </div>

    <section id="grid"></section>

    <section class="totals" id="totals" aria-live="polite"></section>
    <div class="words" id="amountWords"></div>
    <div class="terms"><textarea rows="2" data-header="terms"></textarea></div>
  </section>

  <div class="footnote no-print">Enter or Tab moves to the next cell; Shift goes back; arrow keys move between rows. Leaving the last cell adds a row.</div>
</div>

<script id="cfg-json" type="application/json">{CFG_JSON}</script>
<script id="data-json" type="application/json">{DATA_JSON}</script>

<script>
/* ---------- Read injected config ---------- */
const CONFIG = JSON.parse(document.getElementById('cfg-json').textContent);
let VIEW = JSON.parse(document.getElementById('data-json').textContent);
const API = '/api/' + CONFIG.form;
const NAV_KEYS = ['Enter', 'Tab', 'ArrowUp', 'ArrowDown'];
let programmaticFocus = false;

/* ---------- Utilities ---------- */
function fmt(n){ return Number(n).toLocaleString('en-IN',{minimumFractionDigits:2, maximumFractionDigits:2}); }
async function call(method, path, body){
  const res = await fetch(API + path, {
    method, headers: {'Content-Type':'application/json'},
    body: body === undefined ? undefined : JSON.stringify(body)
  });
  if(!res.ok){ console.warn('Request failed', path, await res.text()); return VIEW; }
  VIEW = await res.json();
  return VIEW;
}

/* ---------- Rendering ---------- */
function render(){
  const root = document.getElementById('grid');
  const table = document.createElement('table');
  const thead = document.createElement('thead');
  const trh = document.createElement('tr');
  ['#', ...CONFIG.columns.map(c=>c.label), ''].forEach((label, i)=>{
    const th = document.createElement('th');
    const col = CONFIG.columns[i-1];
    if(col && col.type==='number'){ th.className = 'num'; }
    th.textContent = label;
    trh.appendChild(th);
  });
  thead.appendChild(trh);

  const tbody = document.createElement('tbody');
  VIEW.rows.forEach((row, ridx)=>{
    const tr = document.createElement('tr');
    const tdn = document.createElement('td');
    tdn.className = 'cell'; tdn.textContent = String(ridx + 1);
    tr.appendChild(tdn);

    CONFIG.columns.forEach(c=>{
      const td = document.createElement('td');
      if(!c.editable){
        td.className = 'cell num strong';
        td.dataset.amount = row.id + ':' + c.key;
        td.textContent = CONFIG.currency + ' ' + fmt(row[c.key]);
      }else{
        const input = document.createElement('input');
        input.type = c.type === 'number' ? 'number' : 'text';
        if(c.type === 'number'){ input.step = 'any'; }
        input.className = 'cell-input';
        input.value = row[c.key] ?? '';
        input.dataset.row = String(row.id);
        input.dataset.key = c.key;
        input.addEventListener('change', onEdit);
        input.addEventListener('keydown', onKey);
        input.addEventListener('focus', onFocus);
        td.appendChild(input);
      }
      tr.appendChild(td);
    });

    const tdx = document.createElement('td');
    tdx.className = 'no-print';
    const del = document.createElement('button');
    del.className = 'btn'; del.textContent = 'x'; del.tabIndex = -1;
    del.addEventListener('click', async ()=>{ await call('DELETE', '/rows/' + row.id); refresh(); });
    tdx.appendChild(del);
    tr.appendChild(tdx);
    tbody.appendChild(tr);
  });

  table.appendChild(thead);
  table.appendChild(tbody);
  root.innerHTML = '';
  root.appendChild(table);
}

function renderTotals(){
  const t = VIEW.totals;
  const lines = CONFIG.summary.map(([key, label])=>
    `<div class="row"><div>${label}</div><div>${CONFIG.currency} ${fmt(t[key])}</div></div>`);
  lines.push(`<div class="row strong"><div>Bill Amount</div><div>${CONFIG.currency} ${VIEW.bill_amount.toLocaleString('en-IN')}</div></div>`);
  document.getElementById('totals').innerHTML = lines.join('');
  document.getElementById('amountWords').textContent = VIEW.amount_in_words;
  document.getElementById('bannerTotal').textContent = CONFIG.currency + ' ' + fmt(t.net_amount);
}

function renderAmounts(){
  VIEW.rows.forEach(row=>{
    CONFIG.columns.filter(c=>!c.editable).forEach(c=>{
      const td = document.querySelector(`td[data-amount="${row.id}:${c.key}"]`);
      if(td){ td.textContent = CONFIG.currency + ' ' + fmt(row[c.key]); }
    });
  });
}

function renderHeader(){
  document.querySelectorAll('[data-header]').forEach(el=>{
    if(document.activeElement !== el){ el.value = VIEW.header[el.dataset.header] ?? ''; }
  });
}

function applyFocus(){
  if(!VIEW.focus) return;
  const sel = `input.cell-input[data-row="${VIEW.focus.row_id}"][data-key="${VIEW.focus.field}"]`;
  const el = document.querySelector(sel);
  if(el && document.activeElement !== el){
    programmaticFocus = true;
    el.focus(); el.select?.();
    programmaticFocus = false;
  }
}

function refresh(){ render(); renderTotals(); renderHeader(); applyFocus(); }

/* ---------- Events ---------- */
async function onEdit(e){
  const t = e.currentTarget;
  await call('POST', '/edit', {row_id: Number(t.dataset.row), field: t.dataset.key, value: t.value});
  renderAmounts();
  renderTotals();
}

async function onKey(e){
  if(!NAV_KEYS.includes(e.key)) return;
  e.preventDefault();
  const t = e.currentTarget;
  await call('POST', '/edit', {row_id: Number(t.dataset.row), field: t.dataset.key, value: t.value});
  await call('POST', '/key', {key: e.key, shift: e.shiftKey});
  refresh();
}

async function onFocus(e){
  if(programmaticFocus) return;
  const t = e.currentTarget;
  await call('POST', '/focus', {row_id: Number(t.dataset.row), field: t.dataset.key});
}

document.querySelectorAll('[data-header]').forEach(el=>{
  el.addEventListener('change', async ()=>{
    await call('POST', '/header', {[el.dataset.header]: el.value});
    renderHeader();
  });
});

document.addEventListener('click', async (e)=>{
  if(!e.target) return;
  if(e.target.id === 'addBtn'){ await call('POST', '/rows'); refresh(); }
  if(e.target.id === 'resetBtn'){ await call('POST', '/reset'); refresh(); }
  if(e.target.id === 'printBtn'){ window.print(); }
});

/* ---------- Boot ---------- */
document.getElementById('exportBtn').href = '/' + CONFIG.form + '/export.csv';
document.getElementById('formNav').innerHTML = Object.entries(CONFIG.forms).map(([name, title])=>
  `<a href="/${name}" class="${name===CONFIG.form?'active':''}">${title}</a>`).join('');
refresh();
</script>
</body>
</html>
"""


def _script_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False).replace("</", "<\\/")


def render_page(
    layout: FormLayout,
    view: Mapping[str, Any],
    *,
    forms: Mapping[str, str],
    currency: str,
    summary_labels: Mapping[str, str],
) -> str:
    cfg = {
        "form": layout.name,
        "columns": [c._asdict() for c in layout.columns],
        "field_order": list(layout.field_order),
        "forms": {name: escape(title) for name, title in forms.items()},
        "currency": currency,
        "summary": [[key, escape(label)] for key, label in summary_labels.items()],
    }
    return (
        HTML_TEMPLATE.replace("{TITLE}", escape(layout.title))
        .replace("{CFG_JSON}", _script_json(cfg))
        .replace("{DATA_JSON}", _script_json(view))
    )
