"""Minimal, realistic snippets for every registry pattern."""

from __future__ import annotations

UNIVERSAL_SNIPPET = (
    "<script>\n"
    "(function(i,s,o,g,r,a,m){i['GoogleAnalyticsObject']=r;i[r]=i[r]||function(){"
    "(i[r].q=i[r].q||[]).push(arguments)},i[r].l=1*new Date();a=s.createElement(o),"
    "m=s.getElementsByTagName(o)[0];a.async=1;a.src=g;m.parentNode.insertBefore(a,m)"
    "})(window,document,'script','https://www.google-analytics.com/analytics.js','ga');\n"
    "gtag('create', 'UA-12345-1', 'auto');\n"
    "</script>"
)

GA4_SNIPPET = (
    '<script async src="https://www.googletagmanager.com/gtag/js?id=G-ABC123XYZ"></script>'
)

GTAG_CONFIG_SNIPPET = (
    "<script>\n"
    "  window.dataLayer = window.dataLayer || [];\n"
    "  function gtag(){dataLayer.push(arguments);}\n"
    "  gtag('js', new Date());\n"
    "  gtag('config', 'G-ABC123XYZ');\n"
    "  gtag('config', 'AW-987654');\n"
    "</script>"
)

GTM_SNIPPET = (
    "<!-- Google Tag Manager -->\n"
    "<script>(function(w,d,s,l,i){w[l]=w[l]||[];w[l].push({'gtm.start':\n"
    "new Date().getTime(),event:'gtm.js'});var f=d.getElementsByTagName(s)[0],\n"
    "j=d.createElement(s),dl=l!='dataLayer'?'&l='+l:'';j.async=true;j.src=\n"
    "'https://www.googletagmanager.com/gtm.js?id='+i+dl;f.parentNode.insertBefore(j,f);\n"
    "})(window,document,'script','dataLayer','GTM-ABC123');</script>\n"
    "<!-- End Google Tag Manager -->"
)

GTM_NOSCRIPT_SNIPPET = (
    '<noscript><iframe src="https://www.googletagmanager.com/ns.html?id=GTM-ABC123" '
    'height="0" width="0" style="display:none;visibility:hidden"></iframe></noscript>'
)

ADS_LOADER_SNIPPET = (
    '<script async src="https://pagead2.googlesyndication.com/pagead/js/adsbygoogle.js'
    '?client=ca-pub-1234567890123456" crossorigin="anonymous"></script>'
)

ADSBYGOOGLE_SNIPPET = (
    "<script>\n"
    '     (adsbygoogle = window.adsbygoogle || []).push({google_ad_client: "ca-pub-1234567890123456"});\n'
    "</script>"
)

OPTIMIZE_SNIPPET = (
    '<script src="https://www.googleoptimize.com/optimize.js?id=GTM-OPT999"></script>'
)

ANALYTICS_JS_SNIPPET = (
    '<script async src="https://www.google-analytics.com/analytics.js" '
    'data-property="UA-55555-2"></script>'
)

#: pattern key -> (snippet text, expected extracted_ids)
TRACKING_SAMPLES: dict[str, tuple[str, tuple[str, ...]]] = {
    "google_analytics_universal": (UNIVERSAL_SNIPPET, ("UA-12345-1",)),
    "google_analytics_ga4": (GA4_SNIPPET, ("G-ABC123XYZ",)),
    "gtag_config": (GTAG_CONFIG_SNIPPET, ("G-ABC123XYZ", "AW-987654")),
    "google_tag_manager": (GTM_SNIPPET, ("GTM-ABC123",)),
    "gtm_noscript": (GTM_NOSCRIPT_SNIPPET, ("GTM-ABC123",)),
    "google_ads": (ADS_LOADER_SNIPPET, ("ca-pub-1234567890123456",)),
    "adsbygoogle": (ADSBYGOOGLE_SNIPPET, ("ca-pub-1234567890123456",)),
    "google_optimize": (OPTIMIZE_SNIPPET, ("GTM-OPT999",)),
    "analytics_js": (ANALYTICS_JS_SNIPPET, ("UA-55555-2",)),
}
