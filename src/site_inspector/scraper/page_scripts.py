"""JavaScript evaluated inside the page by the browser strategy.

Each constant is an arrow function passed to ``page.evaluate``.  They return
plain JSON-serialisable objects whose keys match the camelCase aliases of
the result schemas, so the Python side can ``model_validate`` them directly.
"""

from __future__ import annotations

BASIC_INFO = """
() => {
  const icon = document.querySelector('link[rel~="icon"]')
    || document.querySelector('link[rel="shortcut icon"]');
  const description = document.querySelector('meta[name="description"]');
  return {
    title: document.title || '',
    description: (description && description.getAttribute('content')) || '',
    favicon: (icon && icon.getAttribute('href')) || '',
    language: document.documentElement.lang || 'unknown',
  };
}
"""

CONTENT = """
(selector) => {
  let element = null;
  try {
    element = document.querySelector(selector);
  } catch (e) {
    return { text: '', html: '', structure: { tagName: 'invalid-selector', error: String(e) } };
  }
  if (!element) {
    return { text: '', html: '', structure: { tagName: 'not-found' } };
  }
  const attributes = {};
  for (const attr of Array.from(element.attributes)) {
    attributes[attr.name] = attr.value;
  }
  return {
    text: (element.innerText || element.textContent || '').trim(),
    html: element.outerHTML,
    structure: {
      tagName: element.tagName.toLowerCase(),
      className: typeof element.className === 'string' ? element.className : '',
      id: element.id || '',
      attributes,
      childElementCount: element.childElementCount,
    },
  };
}
"""

# ``limit`` is null for a deep scan.  Candidates are body followed by its
# descendants in document order; the first candidate containing the keyword
# none of whose in-scope children also contain it is reported.
KEYWORDS = """
({ keywords, limit, snippetLength }) => {
  const skip = new Set(['SCRIPT', 'STYLE', 'NOSCRIPT', 'TEMPLATE']);
  const body = document.body;
  if (!body) {
    return { found: [], positions: [] };
  }
  const all = [body, ...Array.from(body.querySelectorAll('*'))];
  const candidates = limit === null ? all : all.slice(0, limit);
  const inScope = new Set(candidates);
  const selectorFor = (el) => {
    if (el.id) return '#' + el.id;
    const cls = typeof el.className === 'string' ? el.className.trim().split(/\\s+/)[0] : '';
    if (cls) return '.' + cls;
    return el.tagName.toLowerCase();
  };
  const found = [];
  const positions = [];
  for (const keyword of keywords) {
    const needle = keyword.toLowerCase();
    for (let index = 0; index < candidates.length; index++) {
      const el = candidates[index];
      if (skip.has(el.tagName)) continue;
      const text = el.textContent || '';
      if (!text.toLowerCase().includes(needle)) continue;
      const deeper = Array.from(el.children).some((child) =>
        inScope.has(child)
        && !skip.has(child.tagName)
        && (child.textContent || '').toLowerCase().includes(needle));
      if (deeper) continue;
      found.push(keyword);
      positions.push({
        keyword,
        element: el.tagName.toLowerCase(),
        text: text.trim().substring(0, snippetLength),
        selector: selectorFor(el),
        position: index,
      });
      break;
    }
  }
  return { found, positions };
}
"""

ASSETS = """
({ images, links, scripts, stylesheets }) => ({
  images: images
    ? Array.from(document.querySelectorAll('img')).map((img) => ({
        src: img.currentSrc || img.src || img.getAttribute('src') || '',
        alt: img.alt || '',
        title: img.title || '',
      }))
    : [],
  links: links
    ? Array.from(document.querySelectorAll('a[href]')).map((a) => ({
        href: a.href || a.getAttribute('href') || '',
        text: (a.textContent || '').trim(),
      }))
    : [],
  scripts: scripts
    ? Array.from(document.querySelectorAll('script[src]')).map((s) => s.src)
    : [],
  stylesheets: stylesheets
    ? Array.from(document.querySelectorAll('link[rel~="stylesheet"]')).map((l) => l.href)
    : [],
})
"""

TECHNICAL = """
() => {
  const w = window;
  const globals = [];
  if (w.React || document.querySelector('[data-reactroot]')) globals.push('React');
  if (w.Vue || w.__VUE__) globals.push('Vue.js');
  if (w.angular || document.querySelector('[ng-version]')) globals.push('Angular');
  if (w.__NEXT_DATA__ || document.getElementById('__NEXT_DATA__')) globals.push('Next.js');
  if (w.jQuery || (w.$ && w.$.fn && w.$.fn.jquery)) globals.push('jQuery');
  const sources = [
    ...Array.from(document.querySelectorAll('script[src]')).map((s) => s.getAttribute('src') || ''),
    ...Array.from(document.querySelectorAll('link[href]')).map((l) => l.getAttribute('href') || ''),
    ...Array.from(document.querySelectorAll('meta[name="generator"]')).map((m) => m.getAttribute('content') || ''),
  ];
  return { globals, sources, domElementCount: document.querySelectorAll('*').length };
}
"""

SEO = """
() => ({
  metaTags: Array.from(document.querySelectorAll('meta'))
    .map((m) => ({
      name: m.getAttribute('name') || m.getAttribute('property') || '',
      content: m.getAttribute('content') || '',
    }))
    .filter((tag) => tag.name),
  headings: Array.from(document.querySelectorAll('h1, h2, h3, h4, h5, h6')).map((h) => ({
    level: parseInt(h.tagName.charAt(1), 10),
    text: (h.textContent || '').trim(),
  })),
  altTexts: Array.from(document.querySelectorAll('img'))
    .map((img) => img.alt || '')
    .filter((alt) => alt !== ''),
})
"""
