"""Services: schema validation, prompt rendering, flow invocation and the
admin workflows built on top of them."""
