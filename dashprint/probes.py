"""
In-page probes.

Each constant is a JavaScript function evaluated inside the dashboard
document with a single argument. Probes only read or mutate the DOM and
return plain data; waits, thresholds and feature gates live in the Python
callers. Element-level failures are caught here and reported as counts.
"""

# Raise the resource-timing buffer before any dashboard script runs, so the
# query counter is not capped at the browser's default of 250 entries.
RESOURCE_BUFFER_INIT = """
if (window.performance && performance.setResourceTimingBufferSize) {
    performance.setResourceTimingBufferSize(10000);
}
"""

# Click every collapsed row/panel. A node that is not an HTMLElement (icons
# are often SVG) delegates the click to its parent. A target that overlaps
# something already clicked in this pass is skipped, so a row matched by
# two selectors is not toggled back closed.
EXPAND_COLLAPSED = """
(selectors) => {
    const acted = [];
    const perSelector = [];
    let expanded = 0;

    const overlaps = (node) => acted.some(a => a === node || a.contains(node) || node.contains(a));

    for (const selector of selectors) {
        let elements = [];
        try {
            elements = Array.from(document.querySelectorAll(selector));
        } catch (e) {
            perSelector.push({selector, matched: 0, clicked: 0, errors: 1});
            continue;
        }

        let clicked = 0;
        let errors = 0;
        for (const el of elements) {
            try {
                if (!el.isConnected || !el.matches(selector)) continue;
                const target = el instanceof HTMLElement ? el : el.parentElement;
                if (!(target instanceof HTMLElement) || overlaps(target)) continue;
                target.click();
                acted.push(target);
                clicked++;
            } catch (e) {
                errors++;
            }
        }
        expanded += clicked;
        perSelector.push({selector, matched: elements.length, clicked, errors});
    }
    return {expanded, perSelector};
}
"""

# Grow panels whose table content is taller than the visible panel. Growing
# the panel reflows the table, so the applied height is re-derived from a
# second measurement taken after the first resize.
EXPAND_TABLES = """
({panelSelectors, tableSelectors, padding}) => {
    let panels = [];
    for (const selector of panelSelectors) {
        const found = document.querySelectorAll(selector);
        if (found.length > 0) {
            panels = Array.from(found);
            break;
        }
    }

    const tableQuery = tableSelectors.join(', ');
    let grown = 0;
    let errors = 0;
    for (const panel of panels) {
        try {
            const table = panel.querySelector(tableQuery);
            if (!table) continue;
            const inner = table.scrollHeight;
            if (inner <= panel.clientHeight) continue;

            panel.style.height = `${inner + padding}px`;
            const settled = table.scrollHeight;
            panel.style.height = `${settled + padding}px`;
            grown++;
        } catch (e) {
            errors++;
        }
    }
    return {panels: panels.length, grown, errors};
}
"""

HIDE_CHROME = """
(classNames) => {
    let hidden = 0;
    for (const name of classNames) {
        for (const el of Array.from(document.getElementsByClassName(name))) {
            el.hidden = true;
            hidden++;
        }
    }
    return hidden;
}
"""

# firstOnly: stop at the first selector family with matches (final pass).
# chartSelector: also force chart nodes inside each panel visible.
FORCE_VISIBILITY = """
({selectors, firstOnly, chartSelector}) => {
    let panels = 0;
    let charts = 0;
    let errors = 0;
    for (const selector of selectors) {
        const found = document.querySelectorAll(selector);
        if (found.length === 0) continue;

        for (const panel of Array.from(found)) {
            try {
                panel.style.display = 'block';
                panel.style.visibility = 'visible';
                panel.style.opacity = '1';
                panels++;
                if (chartSelector) {
                    for (const chart of Array.from(panel.querySelectorAll(chartSelector))) {
                        chart.style.visibility = 'visible';
                        chart.style.opacity = '1';
                        charts++;
                    }
                }
            } catch (e) {
                errors++;
            }
        }
        if (firstOnly) break;
    }
    return {panels, charts, errors};
}
"""

PANEL_COUNTS = """
(selectors) => {
    const counts = {};
    for (const selector of selectors) {
        counts[selector] = document.querySelectorAll(selector).length;
    }
    return counts;
}
"""

# Geometry of the first panel family with any match. Offsets are document
# relative so the result does not depend on the current scroll position.
PANEL_GEOMETRY = """
(families) => {
    const viewportHeight = window.innerHeight;
    for (const selector of families) {
        const found = document.querySelectorAll(selector);
        if (found.length === 0) continue;

        const panels = Array.from(found).map(panel => {
            const rect = panel.getBoundingClientRect();
            const style = window.getComputedStyle(panel);
            return {
                top: rect.top + window.scrollY,
                left: rect.left + window.scrollX,
                width: rect.width,
                height: rect.height,
                visible: rect.width > 0 && rect.height > 0,
                display: style.display,
                visibility: style.visibility,
                opacity: style.opacity,
            };
        });
        return {selector, viewportHeight, panels};
    }
    return {selector: null, viewportHeight, panels: []};
}
"""

SCROLL_CONTAINER = """
(selectors) => {
    let section = null;
    let selectorUsed = 'body (fallback)';
    for (const selector of selectors) {
        section = document.querySelector(selector);
        if (section) {
            selectorUsed = selector;
            break;
        }
    }
    if (!section) section = document.body;

    const child = section.firstElementChild;
    return {
        selector: selectorUsed,
        firstChildScrollHeight: child ? child.scrollHeight : null,
        scrollHeight: section.scrollHeight,
        rectHeight: section.getBoundingClientRect().height,
    };
}
"""

VIEWPORT_METRICS = """
() => ({
    viewportHeight: window.innerHeight,
    scrollHeight: document.body ? document.body.scrollHeight : 0,
})
"""

SCROLL_TO = """
(y) => {
    window.scrollTo(0, y);
    return window.scrollY;
}
"""

LOGIN_SURFACE = """
(selector) => !!document.querySelector(selector)
"""

# Re-fetch the dashboard manifest from the URL the page itself already
# requested, so credentials and API version match the live document.
# A failed fetch or unparsable body yields manifest: null.
FETCH_MANIFEST = """
async (pattern) => {
    const entry = performance.getEntriesByType('resource')
        .find(e => e.name.includes(pattern));
    if (!entry) return {url: null, status: null, manifest: null};

    let status = null;
    try {
        const response = await fetch(entry.name, {credentials: 'include'});
        status = response.status;
        if (!response.ok) return {url: entry.name, status, manifest: null};
        return {url: entry.name, status, manifest: await response.json()};
    } catch (e) {
        return {url: entry.name, status, manifest: null, error: String(e)};
    }
}
"""

QUERY_PROGRESS = """
(pattern) => performance.getEntriesByType('resource')
    .filter(e => e.name.includes(pattern))
    .length
"""
