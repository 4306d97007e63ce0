BINDING_NAME = "__nextwatchNotify"

# Installed with add_init_script so it runs before any page script. It only
# reports: every notification carries a fresh document snapshot, and all
# decisions are made on the Python side.
INSTALL_SCRIPT = r"""
(() => {
  if (window.__nextwatchInstalled) return;
  window.__nextwatchInstalled = true;

  const CONTAINERS = 'main, article, section, [role="main"], .container, #root, [id*="app"], [id*="root"]';
  let paintEntries = [];

  const snapshot = () => {
    const body = document.body;
    const data = window.__NEXT_DATA__;
    const meta = document.querySelector('meta[name="generator"]');
    return {
      readyState: document.readyState,
      location: window.location.pathname + window.location.search,
      hasFrameworkData: !!data,
      frameworkDataHasProps: !!(data && data.props),
      hasRuntime: !!window.next,
      scriptSources: Array.from(document.scripts).map(s => s.src).filter(Boolean),
      metaGenerator: meta ? meta.content : null,
      hasRouteAnnouncer: !!document.querySelector('[aria-live="assertive"]#__next-route-announcer__'),
      hasBody: !!body,
      containerTextLengths: body
        ? Array.from(body.querySelectorAll(CONTAINERS)).map(el => (el.textContent || '').trim().length)
        : [],
      bodyChildCount: body ? body.children.length : 0,
      hasHydrationMarkers: !!document.querySelector('[data-reactroot], [data-reactid]'),
      hasObfuscatedClasses: !!(body && body.querySelector('*[class*="__"]')),
      images: Array.from(document.images).map(img => ({ complete: img.complete, naturalHeight: img.naturalHeight })),
      paintEntries: paintEntries,
    };
  };
  window.__nextwatchSnapshot = snapshot;

  const notify = (kind, detail) => {
    try {
      window.__nextwatchNotify(kind, detail === undefined ? null : detail, snapshot());
    } catch (e) {}
  };

  try {
    if (!window.PerformanceObserver) throw new Error('PerformanceObserver unavailable');
    new PerformanceObserver((list) => {
      for (const entry of list.getEntries()) {
        paintEntries.push({ name: entry.name, startTime: entry.startTime });
      }
      notify('paint');
    }).observe({ type: 'paint', buffered: true });
  } catch (e) {
    paintEntries = null;
  }

  new MutationObserver((records) => notify('mutation', records.length))
    .observe(document, { childList: true, subtree: true });

  let routerHooked = false;
  const hookRouter = () => {
    const router = window.next && window.next.router;
    if (routerHooked || !router || !router.events) return;
    routerHooked = true;
    router.events.on('routeChangeStart', (url) => notify('router', ['routeChangeStart', url]));
    router.events.on('routeChangeComplete', (url) => notify('router', ['routeChangeComplete', url]));
    router.events.on('routeChangeError', (err, url) => notify('router', ['routeChangeError', url || '']));
  };

  document.addEventListener('DOMContentLoaded', () => { hookRouter(); notify('domready'); });
  window.addEventListener('load', () => { hookRouter(); notify('load'); });
  window.addEventListener('popstate', () => notify('popstate'));

  const HISTORY_ENTRY_POINTS = { push: 'pushState', replace: 'replaceState' };
  if (window.navigation && window.navigation.addEventListener) {
    window.navigation.addEventListener('currententrychange', (event) => {
      const name = HISTORY_ENTRY_POINTS[event.navigationType];
      if (name) notify('history', name);
    });
  } else {
    // No Navigation API: wrap the two entry points instead.
    for (const name of Object.values(HISTORY_ENTRY_POINTS)) {
      const original = history[name];
      history[name] = function () {
        const result = original.apply(this, arguments);
        notify('history', name);
        return result;
      };
    }
  }
})();
"""

SNAPSHOT_SCRIPT = "() => (window.__nextwatchSnapshot ? window.__nextwatchSnapshot() : null)"
