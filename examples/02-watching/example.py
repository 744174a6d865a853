import asyncio
import os

import kubeaccess


def on_event(event: kubeaccess.WatchEvent[kubeaccess.Pod]):
    if event.object is not None:
        print(f"{event.type.value}: {event.object.metadata.name}")
    else:
        print(f"{event.type.value} @ {event.resource_version}")


async def main():
    info = kubeaccess.ConnectionInfo(
        server=os.environ.get('K8S_SERVER', 'https://localhost:6443'),
        token=os.environ.get('K8S_TOKEN'),
        insecure=True,
    )
    async with kubeaccess.Cluster(info) as cluster:
        pods = await cluster.v1.pods.list_namespaced('default', limit=1)
        stream = cluster.v1.pods.watch_namespaced(
            'default', resource_version=pods.resource_version, timeout=60)
        try:
            await stream.run(on_event)
        except kubeaccess.StreamClosedError as e:
            print(f"The watch is over: {e.status.reason if e.status else e}")
        except kubeaccess.DeadlineExceededError:
            print("The watch has timed out.")
        print(f"Resume from: {stream.resource_version}")


if __name__ == '__main__':
    kubeaccess.configure(log_format=kubeaccess.LogFormat.PLAIN)
    asyncio.run(main())
