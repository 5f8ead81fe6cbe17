"""Render the service worker script served at ``/sw.js``."""

from __future__ import annotations

import json
from string import Template

from remind.pwa.cache_strategy import DYNAMIC_CACHE, OFFLINE_PAGE, STATIC_CACHE, STATIC_FILES

SNOOZE_MINUTES = 10
SYNC_TAG = "background-sync-reminders"

_TEMPLATE = Template(
    """// RE:MIND service worker (generated)
const STATIC_CACHE = '$static_cache'
const DYNAMIC_CACHE = '$dynamic_cache'
const OFFLINE_PAGE = '$offline_page'
const STATIC_FILES = $static_files

self.addEventListener('install', (event) => {
  event.waitUntil(
    caches.open(STATIC_CACHE)
      .then((cache) => cache.addAll(STATIC_FILES))
      .then(() => self.skipWaiting())
  )
})

self.addEventListener('activate', (event) => {
  event.waitUntil(
    caches.keys()
      .then((names) => Promise.all(
        names
          .filter((name) => name !== STATIC_CACHE && name !== DYNAMIC_CACHE)
          .map((name) => caches.delete(name))
      ))
      .then(() => self.clients.claim())
  )
})

self.addEventListener('fetch', (event) => {
  const request = event.request
  if (request.method !== 'GET') {
    return
  }
  const url = new URL(request.url)

  if (url.origin === location.origin) {
    event.respondWith(
      caches.match(request).then((cached) => {
        if (cached) {
          return cached
        }
        return fetch(request)
          .then((response) => {
            if (!response || response.status !== 200 || response.type !== 'basic') {
              return response
            }
            const copy = response.clone()
            caches.open(DYNAMIC_CACHE).then((cache) => cache.put(request, copy))
            return response
          })
          .catch(() => {
            if (request.mode === 'navigate') {
              return caches.match(OFFLINE_PAGE)
            }
          })
      })
    )
    return
  }

  event.respondWith(
    caches.match(request).then((cached) => cached || fetch(request).then((response) => {
      if (response.status === 200) {
        const copy = response.clone()
        caches.open(DYNAMIC_CACHE).then((cache) => cache.put(request, copy))
      }
      return response
    }))
  )
})

self.addEventListener('sync', (event) => {
  if (event.tag === '$sync_tag') {
    event.waitUntil(notifyClients({ type: 'SYNC_REQUESTED', tag: event.tag }))
  }
})

self.addEventListener('message', (event) => {
  if (event.data && event.data.type === 'SYNC_COMPLETE') {
    event.waitUntil(notifyClients({ type: 'SYNC_COMPLETE', synced: event.data.synced || 0 }))
  }
})

self.addEventListener('push', (event) => {
  if (!event.data) {
    return
  }
  const data = event.data.json()
  const options = {
    body: data.body,
    tag: data.tag,
    icon: '/icons/icon-192x192.png',
    badge: '/icons/badge-72x72.png',
    vibrate: [100, 50, 100],
    data: Object.assign({ dateOfArrival: Date.now() }, data.data || {}),
    actions: [
      { action: 'snooze', title: 'Snooze ${snooze_minutes}min' },
      { action: 'complete', title: 'Mark Done' }
    ]
  }
  event.waitUntil(self.registration.showNotification(data.title, options))
})

self.addEventListener('notificationclick', (event) => {
  event.notification.close()
  const data = event.notification.data || {}
  const id = encodeURIComponent(data.reminderId || data.eventId || '')
  let target = data.url || '/'
  if (event.action === 'snooze') {
    target = '/?action=snooze&minutes=$snooze_minutes&id=' + id
  } else if (event.action === 'complete') {
    target = '/?action=complete&id=' + id
  }
  event.waitUntil(clients.openWindow(target))
})

function notifyClients(message) {
  return self.clients.matchAll({ includeUncontrolled: true }).then((all) => {
    all.forEach((client) => client.postMessage(message))
  })
}
"""
)


def render_service_worker() -> str:
    return _TEMPLATE.substitute(
        static_cache=STATIC_CACHE,
        dynamic_cache=DYNAMIC_CACHE,
        offline_page=OFFLINE_PAGE,
        static_files=json.dumps(list(STATIC_FILES)),
        sync_tag=SYNC_TAG,
        snooze_minutes=SNOOZE_MINUTES,
    )
